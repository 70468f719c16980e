"""Exit codes, site statuses and the local document record used by the CLI."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    CONFLICTS means the remote branch moved underneath the operation;
    AUTH_ERROR covers missing or rejected tokens; NETWORK_ERROR covers
    timeouts and unreachable hosts.
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICTS = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


class BuildStatus(str, Enum):
    """Static site build state reported for a document."""
    BUILDING = "BUILDING"
    BUILT = "BUILT"
    ERROR = "ERROR"


class PublishStatus(str, Enum):
    """Publishing state of a document's site."""
    UNPUBLISHED = "UNPUBLISHED"
    PUBLISHING = "PUBLISHING"
    PUBLISHED = "PUBLISHED"
    ERROR = "ERROR"


@dataclass
class DocumentRecord:
    """Per-document record tracked in .sitesync/document.yaml.

    Configuration may only be loaded once the site generator has reported a
    successful build (build_status == BUILT). Content writes move the
    publish status to PUBLISHING because the host publishes on push.

    Attributes:
        document_id: Stable identifier for the site document
        repository: Repository reference string (``owner/name[@branch]``)
        template: Template identifier the site was created from
        build_status: Latest build state
        publish_status: Latest publish state

    Example:
        >>> record = DocumentRecord(document_id="site-1", repository="acme/site")
        >>> record.build_status
        <BuildStatus.BUILDING: 'BUILDING'>
    """
    document_id: str
    repository: str
    template: Optional[str] = None
    build_status: BuildStatus = BuildStatus.BUILDING
    publish_status: PublishStatus = PublishStatus.UNPUBLISHED
