"""Subject catalogs: which artifacts and skills exist, and who owns them.

The static catalog is a YAML file::

    artifacts:
      art_1:
        owner_handle: alice
    skills:
      skill_summarize: {}
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import yaml

from agent_feedback.config import ConfigurationError, get_catalog_path

logger = logging.getLogger(__name__)

_SECTIONS = ("artifacts", "skills")


class SubjectCatalog(ABC):
    """Lookup interface for commentable subjects."""

    @abstractmethod
    def exists(self, subject_id: str) -> bool:
        """Return True when ``subject_id`` is a known artifact or skill."""

    @abstractmethod
    def owner_handle(self, subject_id: str) -> Optional[str]:
        """Return the handle of the subject's owner, if known."""


class OpenSubjectCatalog(SubjectCatalog):
    """Catalog that accepts every subject and knows no owners."""

    def exists(self, subject_id: str) -> bool:
        return bool(subject_id)

    def owner_handle(self, subject_id: str) -> Optional[str]:
        return None


class StaticSubjectCatalog(SubjectCatalog):
    """In-memory catalog, usually loaded from YAML."""

    def __init__(self, owners: Dict[str, Optional[str]]):
        """Initialize the catalog.

        Args:
            owners: subject_id -> owner handle (None when unowned)
        """
        self._owners = dict(owners)

    @classmethod
    def from_yaml(cls, path: Path) -> "StaticSubjectCatalog":
        """Load a catalog file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationError(f"Catalog file not found: {path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in catalog file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Catalog file {path} must contain a mapping")

        owners: Dict[str, Optional[str]] = {}
        for section in _SECTIONS:
            entries = data.get(section) or {}
            if not isinstance(entries, dict):
                raise ConfigurationError(f"Catalog section '{section}' must be a mapping")
            for subject_id, meta in entries.items():
                meta = meta or {}
                owner = meta.get("owner_handle") if isinstance(meta, dict) else None
                owners[str(subject_id)] = str(owner).lstrip("@") if owner else None

        logger.info("Loaded %s subjects from catalog", len(owners))
        return cls(owners)

    def exists(self, subject_id: str) -> bool:
        return subject_id in self._owners

    def owner_handle(self, subject_id: str) -> Optional[str]:
        return self._owners.get(subject_id)


def load_catalog(path: Optional[Path] = None) -> SubjectCatalog:
    """Build the configured catalog (``FEEDBACK_CATALOG_PATH``), or an open one."""
    path = path or get_catalog_path()
    if path is None:
        logger.info("No catalog configured, accepting every subject")
        return OpenSubjectCatalog()
    return StaticSubjectCatalog.from_yaml(path)
