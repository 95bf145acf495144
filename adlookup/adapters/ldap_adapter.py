import getpass
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import keyring
from keyring.errors import KeyringError
from ldap3 import ALL, BASE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException

logger = logging.getLogger(__name__)

# Result codes that still carry usable entries (or none) rather than a failure
RESULT_SUCCESS = 0
RESULT_SIZE_LIMIT_EXCEEDED = 4
RESULT_NO_SUCH_OBJECT = 32

# Attributes returned as the server sent them instead of the schema-formatted value
RAW_VALUE_ATTRIBUTES = ("accountExpires",)


class LDAPAdapter:
    """
    Directory search provider backed by an ldap3 connection.

    Every find_all/find_one call binds a fresh connection and unbinds it
    before returning, whether the search succeeded, found nothing or raised.
    Results come back as raw attribute bags: attribute name -> list of values.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize LDAP adapter with configuration settings.

        Args:
            config: Dictionary containing LDAP connection settings.
                   Required keys:
                   - 'server': LDAP server hostname
                   - 'search_base': Default base DN for searches
                   - 'user': Username for authentication
                   - 'keyring_service': Keyring service name for password

                   Optional keys with defaults:
                   - 'password': Password (skips keyring and prompt when set)
                   - 'port': LDAP port (default: 636 for SSL, 389 for non-SSL)
                   - 'use_ssl': Enable SSL/TLS (default: True)
                   - 'timeout': Connection timeout in seconds (default: 30)
                   - 'get_info': Server info level (default: ALL)

        Raises:
            ValueError: If required configuration keys are missing
            TypeError: If configuration is not a dictionary
        """
        if not isinstance(config, dict):
            raise TypeError("Configuration must be a dictionary")

        required_keys = ["server", "search_base", "user", "keyring_service"]
        missing_keys = [key for key in required_keys if not config.get(key)]
        if missing_keys:
            raise ValueError(f"Missing required configuration keys: {missing_keys}")

        self.server_hostname = config["server"]
        self.search_base = config["search_base"]
        self.user = config["user"]
        self.keyring_service = config["keyring_service"]

        self.use_ssl = config.get("use_ssl", True)
        self.port = config.get("port", 636 if self.use_ssl else 389)
        self.timeout = config.get("timeout", 30)
        self.get_info = config.get("get_info", ALL)

        self._server = None
        self._password = config.get("password")

        logger.debug(f"LDAP adapter initialized for server: {self.server_hostname}")

    def _get_password(self) -> str:
        """
        Retrieve password from configuration, keyring, or prompt user.

        Returns:
            str: The password for LDAP authentication

        Raises:
            KeyboardInterrupt: If user cancels password prompt
        """
        if self._password:
            return self._password

        try:
            password = keyring.get_password(self.keyring_service, self.user)
            if password:
                logger.debug("Using password from keyring")
                self._password = password
                return password
        except KeyringError as e:
            logger.warning(f"Could not retrieve password from keyring: {e}")

        try:
            password = getpass.getpass(f"Enter LDAP password for {self.user}: ")
            self._password = password

            save_password = input("Save password to keyring? (y/n): ").lower().strip()
            if save_password == "y":
                try:
                    keyring.set_password(self.keyring_service, self.user, password)
                    logger.info("Password saved to keyring")
                except KeyringError as e:
                    logger.warning(f"Could not save password to keyring: {e}")

            return password

        except KeyboardInterrupt:
            logger.info("Password prompt cancelled by user")
            raise

    def _create_server(self) -> Server:
        if not self._server:
            self._server = Server(
                self.server_hostname,
                use_ssl=self.use_ssl,
                port=self.port,
                get_info=self.get_info,
                connect_timeout=self.timeout,
            )
            logger.debug(f"LDAP server object created: {self.server_hostname}:{self.port}")

        return self._server

    def _create_connection(self) -> Connection:
        """
        Create and bind LDAP connection.

        Returns:
            Connection: Authenticated ldap3 Connection object

        Raises:
            LDAPException: If connection or authentication fails
        """
        try:
            connection = Connection(
                self._create_server(),
                user=self.user,
                password=self._get_password(),
                auto_bind=True,
                receive_timeout=self.timeout,
            )
        except LDAPException as e:
            logger.error(f"LDAP connection failed: {e}")
            raise

        if not connection.bound:
            raise LDAPException("Failed to bind to LDAP server")

        logger.debug(f"Connected to {self.server_hostname}")
        return connection

    @contextmanager
    def _bound_connection(self) -> Iterator[Connection]:
        """Bound connection for the duration of one search, always unbound afterwards."""
        connection = self._create_connection()
        try:
            yield connection
        finally:
            try:
                connection.unbind()
                logger.debug("Search connection closed")
            except LDAPException as e:
                logger.warning(f"Error closing LDAP connection: {e}")

    def test_connection(self) -> bool:
        """
        Bind and read the default search base to check the configuration works.

        Returns:
            bool: True if connection test succeeds, False otherwise
        """
        try:
            with self._bound_connection() as conn:
                success = conn.search(
                    search_base=self.search_base,
                    search_filter="(objectClass=*)",
                    search_scope=BASE,
                    attributes=["objectClass"],
                )
                if success:
                    logger.info(f"✅ Connection test successful: {self.search_base}")
                else:
                    logger.warning(f"Connection test search failed: {conn.result}")
                return bool(success)
        except LDAPException as e:
            logger.error(f"❌ LDAP connection test failed: {e}")
            return False

    def get_connection_info(self) -> Dict[str, Any]:
        """
        Get information about the current LDAP configuration.

        Returns:
            Dict[str, Any]: Configuration information (passwords excluded)
        """
        return {
            "server": self.server_hostname,
            "port": self.port,
            "use_ssl": self.use_ssl,
            "search_base": self.search_base,
            "user": self.user,
            "keyring_service": self.keyring_service,
            "timeout": self.timeout,
        }

    def __str__(self) -> str:
        ssl_status = "SSL" if self.use_ssl else "non-SSL"
        return f"LDAPAdapter({self.server_hostname}:{self.port}, {ssl_status}, user={self.user})"

    def __repr__(self) -> str:
        return (
            f"LDAPAdapter(server='{self.server_hostname}', port={self.port}, "
            f"use_ssl={self.use_ssl}, search_base='{self.search_base}', "
            f"user='{self.user}', keyring_service='{self.keyring_service}')"
        )

    # Directory search provider interface

    def find_all(
        self,
        search_root: Optional[str],
        search_filter: str,
        size_limit: Optional[int],
        attributes: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """
        Run a subtree search and return every matching entry.

        Args:
            search_root: Base DN for the search (defaults to the adapter's search_base)
            search_filter: LDAP filter string, e.g. '(&(objectClass=User)(mail=j*))'
            size_limit: Maximum number of entries to return (None for server limit)
            attributes: Attribute names to load

        Returns:
            List[Dict[str, Any]]: Raw attribute bags, one per entry

        Raises:
            LDAPException: If the bind or the search fails
        """
        base_dn = search_root or self.search_base
        search_attributes = list(attributes) or ["objectClass"]

        try:
            with self._bound_connection() as conn:
                logger.debug(
                    f"Executing search: filter='{search_filter}', base='{base_dn}', limit={size_limit}"
                )
                conn.search(
                    search_base=base_dn,
                    search_filter=search_filter,
                    search_scope=SUBTREE,
                    attributes=search_attributes,
                    size_limit=size_limit or 0,
                )
                self._check_result(conn.result, search_filter)

                entries = [
                    self._to_attribute_bag(response)
                    for response in conn.response or []
                    if response.get("type") == "searchResEntry"
                ]
        except LDAPException:
            raise
        except Exception as e:
            logger.error(f"Unexpected error during search: {e}")
            raise LDAPException(f"Search operation failed: {e}")

        logger.info(f"Search completed successfully: {len(entries)} results returned")
        return entries

    def find_one(
        self,
        search_root: Optional[str],
        search_filter: str,
        attributes: Sequence[str],
    ) -> Optional[Dict[str, Any]]:
        """Return the first entry matching the filter, or None."""
        entries = self.find_all(search_root, search_filter, 1, attributes)
        return entries[0] if entries else None

    @staticmethod
    def _check_result(result: Optional[Dict[str, Any]], search_filter: str) -> None:
        result_code = (result or {}).get("result", RESULT_SUCCESS)

        if result_code == RESULT_SIZE_LIMIT_EXCEEDED:
            logger.debug(f"Size limit reached for filter '{search_filter}'")
        elif result_code == RESULT_NO_SUCH_OBJECT:
            logger.debug(f"Search base not found for filter '{search_filter}'")
        elif result_code != RESULT_SUCCESS:
            description = result.get("description", "unknown error")
            message = result.get("message", "")
            logger.error(f"LDAP search failed: {description} ({result_code}) {message}")
            raise LDAPException(f"Search operation failed: {description} ({result_code}) {message}")

    @staticmethod
    def _to_attribute_bag(response: Dict[str, Any]) -> Dict[str, Any]:
        bag = {}
        for name, value in (response.get("attributes") or {}).items():
            if value is None:
                bag[name] = []
            elif isinstance(value, (list, tuple)):
                bag[name] = list(value)
            else:
                bag[name] = [value]

        raw_attributes = response.get("raw_attributes") or {}
        for raw_name in RAW_VALUE_ATTRIBUTES:
            for name, values in raw_attributes.items():
                if name.lower() == raw_name.lower():
                    bag[name] = [
                        value.decode("utf-8") if isinstance(value, bytes) else value
                        for value in values
                    ]

        if "distinguishedname" not in {name.lower() for name in bag}:
            bag["distinguishedName"] = [response.get("dn")]

        return bag
