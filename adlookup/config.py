import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

from .exceptions import InvalidArgumentError

load_dotenv()

logger = logging.getLogger(__name__)

USER_SECTION = "User"
GROUP_SECTION = "Group"
SEARCH_ROOT_KEY = "SearchRoot"
SECTIONS = (USER_SECTION, GROUP_SECTION)

DEFAULT_CONFIG_PATH = Path.home() / ".adlookup" / "config.json"


class ADLookupConfig:
    """Connection settings from environment variables (and a .env file)."""

    @staticmethod
    def get_ldap_config() -> Dict[str, Any]:
        """Get LDAP adapter configuration from environment variables."""
        use_ssl = os.getenv("ADLOOKUP_USE_SSL", "true").lower() in ("1", "true", "yes")
        return {
            "server": os.getenv("ADLOOKUP_SERVER"),
            "search_base": os.getenv("ADLOOKUP_SEARCH_BASE"),
            "user": os.getenv("ADLOOKUP_USER"),
            "password": os.getenv("ADLOOKUP_PASSWORD"),
            "keyring_service": os.getenv("ADLOOKUP_KEYRING_SERVICE", "adlookup"),
            "port": int(os.getenv("ADLOOKUP_PORT", "636" if use_ssl else "389")),
            "use_ssl": use_ssl,
            "timeout": int(os.getenv("ADLOOKUP_TIMEOUT", "30")),
        }

    @staticmethod
    def get_config_path() -> Path:
        """Location of the search root document."""
        path = os.getenv("ADLOOKUP_CONFIG_PATH")
        return Path(path).expanduser() if path else DEFAULT_CONFIG_PATH


class ConfigStore:
    """
    Search roots for user and group searches, kept in a small JSON document:

        {"User": {"SearchRoot": "OU=People,DC=example,DC=com"},
         "Group": {"SearchRoot": "OU=Groups,DC=example,DC=com"}}

    Writes replace the whole file; there is no locking between writers.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else ADLookupConfig.get_config_path()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            document = json.load(fh)
        return document if isinstance(document, dict) else {}

    def get_search_root(self, key: str) -> Optional[str]:
        """
        Get one search root.

        The key set is closed: only the 'User' and 'Group' sections exist.
        A missing document, section or SearchRoot value reads as unset, while
        a key outside that set is a caller error rather than an unset value.

        Args:
            key: 'User' or 'Group'

        Returns:
            Optional[str]: The stored search root, or None when unset

        Raises:
            InvalidArgumentError: If key is not 'User' or 'Group'
        """
        if key not in SECTIONS:
            raise InvalidArgumentError(f"Unknown configuration key {key!r}, expected one of {list(SECTIONS)}")

        section = self._load().get(key)
        if not isinstance(section, dict):
            return None
        return section.get(SEARCH_ROOT_KEY) or None

    def set_search_roots(
        self,
        user_search_root: Optional[str] = None,
        group_search_root: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store one or both search roots, keeping any value not supplied.

        Returns:
            Dict[str, Any]: The document as written

        Raises:
            InvalidArgumentError: If neither search root is supplied
        """
        if not user_search_root and not group_search_root:
            raise InvalidArgumentError("At least one of user or group search root is required")

        document = self._load()
        for section, value in ((USER_SECTION, user_search_root), (GROUP_SECTION, group_search_root)):
            if not value:
                continue
            if not isinstance(document.get(section), dict):
                document[section] = {}
            document[section][SEARCH_ROOT_KEY] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(document, fh, indent=4)

        logger.info(f"Search roots saved to {self.path}")
        return document
