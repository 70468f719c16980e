"""Configuration file discovery.

Locates configuration in a site repository: a single root file (first match
of ROOT_CONFIG_NAMES wins) and/or every supported file under the config
directory, including environment subfolders such as config/production/.
"""

import logging
from typing import Dict, List, Tuple

from src.repo_client.content_store import RemoteContentStore
from .errors import ConfigFileError, ConfigNotFoundError, ParseError
from .formats import is_config_file
from .models import RawConfigFile


logger = logging.getLogger(__name__)

CONFIG_DIR = "config"

ROOT_CONFIG_NAMES = (
    "config.toml",
    "config.yaml",
    "config.yml",
    "config.json",
    "hugo.toml",
    "hugo.yaml",
    "hugo.yml",
    "hugo.json",
)


class ConfigDiscovery:
    """Finds and fetches the raw configuration files of a site."""

    def __init__(self, store: RemoteContentStore):
        self.store = store

    def find_paths(self) -> List[str]:
        """Return config paths to load, root file first.

        Raises:
            ConfigNotFoundError: If no root file and no config directory file exists
        """
        entries = self.store.list_tree()
        blob_paths = [entry.path for entry in entries if entry.is_blob]
        present = set(blob_paths)

        paths: List[str] = []
        root_file = next((name for name in ROOT_CONFIG_NAMES if name in present), None)
        if root_file:
            logger.debug(f"Root config file: {root_file}")
            paths.append(root_file)

        prefix = f"{CONFIG_DIR}/"
        directory_files = [
            path for path in blob_paths
            if path.startswith(prefix) and is_config_file(path)
        ]
        if directory_files:
            logger.debug(f"Found {len(directory_files)} file(s) under {CONFIG_DIR}/")
        paths.extend(directory_files)

        if not paths:
            raise ConfigNotFoundError(list(ROOT_CONFIG_NAMES) + [prefix])
        return paths

    def discover(self) -> Tuple[Dict[str, RawConfigFile], List[ConfigFileError]]:
        """Fetch every config file.

        Files that vanish between listing and reading, or that are not valid
        UTF-8, are reported as errors; the rest are returned.

        Returns:
            Tuple of (raw files keyed by path in discovery order, collected errors)
        """
        paths = self.find_paths()
        contents = self.store.read_many(paths)

        raw_files: Dict[str, RawConfigFile] = {}
        errors: List[ConfigFileError] = []
        for path in paths:
            data = contents.get(path)
            if data is None:
                errors.append(ConfigFileError(path, 'read', 'file disappeared before it could be read'))
                continue
            try:
                text = data.decode('utf-8')
            except UnicodeDecodeError as e:
                errors.append(ParseError(path, f"not valid UTF-8: {e}"))
                continue
            raw_files[path] = RawConfigFile(
                path=path,
                content=text,
                from_directory=path.startswith(f"{CONFIG_DIR}/"),
            )

        logger.info(f"Discovered {len(raw_files)} config file(s), {len(errors)} unreadable")
        return raw_files, errors
