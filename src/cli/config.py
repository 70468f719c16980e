"""Document record loading and validation.

This module loads and saves the per-document record (repository, template,
build and publish status) kept in .sitesync/document.yaml.
"""

import os
from typing import Any, Dict, Optional

import yaml

from .errors import StateError, StateFilesystemError
from .models import BuildStatus, DocumentRecord, PublishStatus


class DocumentStore:
    """Handles document record loading, validation, and saving.

    Record file structure:
        document_id: "site-1"
        repository: "acme/site@main"
        template: "ananke"
        build_status: "BUILT"
        publish_status: "PUBLISHED"

    A missing or empty file means no record has been initialised yet.
    """

    DEFAULT_STATE_DIR = '.sitesync'
    DEFAULT_STATE_FILE = 'document.yaml'

    @classmethod
    def default_path(cls) -> str:
        return os.path.join(cls.DEFAULT_STATE_DIR, cls.DEFAULT_STATE_FILE)

    @classmethod
    def load(cls, record_path: str) -> Optional[DocumentRecord]:
        """Load and parse a record from a YAML file.

        Args:
            record_path: Path to the YAML record file

        Returns:
            DocumentRecord, or None if the file is missing or empty

        Raises:
            StateFilesystemError: If file cannot be read (except FileNotFoundError)
            StateError: If the record is invalid or malformed
        """
        try:
            with open(record_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except PermissionError:
            raise StateFilesystemError(record_path, 'read', 'Permission denied')
        except OSError as e:
            raise StateFilesystemError(record_path, 'read', str(e))

        if not content.strip():
            return None

        try:
            record_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StateError(f"Invalid YAML syntax: {str(e)}")

        if record_dict is None:
            return None

        if not isinstance(record_dict, dict):
            raise StateError(
                f"Record must be a YAML dictionary, got {type(record_dict).__name__}"
            )

        return cls._parse_record(record_dict)

    @classmethod
    def save(cls, record_path: str, record: DocumentRecord) -> None:
        """Save a record to a YAML file.

        Raises:
            StateFilesystemError: If file cannot be written
        """
        record_dict = {
            'document_id': record.document_id,
            'repository': record.repository,
            'template': record.template,
            'build_status': record.build_status.value,
            'publish_status': record.publish_status.value,
        }

        yaml_str = yaml.safe_dump(
            record_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        state_dir = os.path.dirname(record_path)
        if state_dir:
            try:
                os.makedirs(state_dir, exist_ok=True)
            except OSError as e:
                raise StateFilesystemError(state_dir, 'create_directory', str(e))

        try:
            with open(record_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise StateFilesystemError(record_path, 'write', 'Permission denied')
        except OSError as e:
            raise StateFilesystemError(record_path, 'write', str(e))

    @classmethod
    def _parse_record(cls, record_dict: Dict[str, Any]) -> DocumentRecord:
        """Parse and validate a record dictionary.

        Raises:
            StateError: If a required field is missing or a status is unknown
        """
        for required in ('document_id', 'repository'):
            value = record_dict.get(required)
            if not isinstance(value, str) or not value.strip():
                raise StateError("Field is required and must be a non-empty string", required)

        template = record_dict.get('template')
        if template is not None and not isinstance(template, str):
            raise StateError(
                f"Field must be a string, got {type(template).__name__}",
                'template'
            )

        try:
            build_status = BuildStatus(record_dict.get('build_status') or BuildStatus.BUILDING.value)
        except ValueError:
            raise StateError(
                f"Unknown build status {record_dict.get('build_status')!r}",
                'build_status'
            )

        try:
            publish_status = PublishStatus(
                record_dict.get('publish_status') or PublishStatus.UNPUBLISHED.value
            )
        except ValueError:
            raise StateError(
                f"Unknown publish status {record_dict.get('publish_status')!r}",
                'publish_status'
            )

        return DocumentRecord(
            document_id=record_dict['document_id'].strip(),
            repository=record_dict['repository'].strip(),
            template=template,
            build_status=build_status,
            publish_status=publish_status,
        )
