"""
AD Lookup Facade

Entry point for user and group lookups. Builds the query for the requested
search mode, runs it through the directory search provider within the
configured search root, and turns the hits into PersonRecord / GroupRecord
objects, expanding group membership where asked to.
"""

import logging
from typing import Iterable, List, Optional

from ..adapters.base import DirectorySearchProvider
from ..config import GROUP_SECTION, USER_SECTION, ConfigStore
from ..exceptions import InvalidArgumentError
from ..models.attribute_map import as_list, get_attribute
from ..models.group_record import GroupRecord
from ..models.person_record import PersonRecord
from ..picker import ConsolePicker, Picker
from ..query import query_builder
from ..query.query_builder import DEFAULT_MAX_RESULTS, DirectoryQuery
from ..services.disambiguation import disambiguate
from ..services.group_membership_service import GroupMembershipService

logger = logging.getLogger(__name__)


class ADLookupFacade:
    """
    Read-only user and group lookups against a directory.

    Args:
        provider: Directory search provider (normally an LDAPAdapter)
        config_store: Source of the user and group search roots
        picker: Chooses among several users matching one identifier
        membership: Group membership traversal (built from provider when omitted)
    """

    def __init__(
        self,
        provider: DirectorySearchProvider,
        config_store: Optional[ConfigStore] = None,
        picker: Optional[Picker] = None,
        membership: Optional[GroupMembershipService] = None,
    ) -> None:
        self.provider = provider
        self.config_store = config_store if config_store is not None else ConfigStore()
        self.picker = picker if picker is not None else ConsolePicker()
        self.membership = membership if membership is not None else GroupMembershipService(provider)

    def _search_root(self, key: str) -> Optional[str]:
        return self.config_store.get_search_root(key)

    def _find_users(self, query: DirectoryQuery) -> List[PersonRecord]:
        entries = self.provider.find_all(
            self._search_root(USER_SECTION),
            query.search_filter,
            query.size_limit,
            list(query.attributes),
        )
        if not entries:
            logger.warning(f"No users found matching {query.criteria}")
            return []
        return [PersonRecord.from_attributes(entry) for entry in entries]

    def _find_groups(self, query: DirectoryQuery) -> List[GroupRecord]:
        entries = self.provider.find_all(
            self._search_root(GROUP_SECTION),
            query.search_filter,
            query.size_limit,
            list(query.attributes),
        )
        if not entries:
            logger.warning(f"No groups found matching {query.criteria}")
            return []
        return [GroupRecord.from_attributes(entry) for entry in entries]

    # User searches

    def get_users_by_identifier(
        self,
        identifier: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[PersonRecord]:
        """Users whose logon name or employee ID matches (defaults to the invoking user)."""
        query = query_builder.user_by_identifier(identifier, max_results, extra_attributes)
        return self._find_users(query)

    def get_users_by_full_name(
        self,
        full_name: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[PersonRecord]:
        query = query_builder.user_by_full_name(full_name, max_results, extra_attributes)
        return self._find_users(query)

    def get_users_by_name(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[PersonRecord]:
        query = query_builder.user_by_first_last_name(
            first_name, last_name, max_results, extra_attributes
        )
        return self._find_users(query)

    def get_users_by_mail(
        self,
        mail: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[PersonRecord]:
        query = query_builder.user_by_mail(mail, max_results, extra_attributes)
        return self._find_users(query)

    def get_users_by_group(
        self,
        group_name: str,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[PersonRecord]:
        """
        All users in the groups matching group_name, nested groups included.

        Every user appears once even when reachable through several groups.
        The result cap does not apply; the full membership is returned.
        """
        query = query_builder.group_by_name(
            group_name, max_results=None, edge_attributes=["member"]
        )
        groups = self.provider.find_all(
            self._search_root(GROUP_SECTION),
            query.search_filter,
            query.size_limit,
            list(query.attributes),
        )
        if not groups:
            logger.warning(f"No groups found matching '{group_name}'")
            return []

        visited = set()
        users = []
        for group in groups:
            logger.debug(f"Expanding members of {as_list(get_attribute(group, 'distinguishedName'))}")
            users.extend(
                self.membership.flatten_members(
                    as_list(get_attribute(group, "member")), extra_attributes, visited
                )
            )

        if not users:
            logger.warning(f"No users found in groups matching '{group_name}'")
        return users

    def get_users(
        self,
        identifier: Optional[str] = None,
        full_name: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        mail: Optional[str] = None,
        group_name: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[PersonRecord]:
        """
        Search users by whichever single criterion was supplied.

        Args:
            identifier: Logon name or employee ID (the default mode)
            full_name: Display name, at least 4 characters
            first_name: Given name, at least 2 characters
            last_name: Surname, at least 2 characters
            mail: Mail address, at least 2 characters
            group_name: Group whose (nested) members to list
            max_results: Result cap, 1-1000
            extra_attributes: Additional attributes to attach to each record

        Returns:
            List[PersonRecord]: Matching users, empty when nothing matched

        Raises:
            InvalidArgumentError: If arguments are invalid or several modes are combined
        """
        query_builder.validate_max_results(max_results)
        modes = [
            name
            for name, supplied in (
                ("identifier", identifier is not None),
                ("full_name", full_name is not None),
                ("first/last name", first_name is not None or last_name is not None),
                ("mail", mail is not None),
                ("group_name", group_name is not None),
            )
            if supplied
        ]
        if len(modes) > 1:
            raise InvalidArgumentError(f"Only one search mode may be used, got: {', '.join(modes)}")

        if full_name is not None:
            return self.get_users_by_full_name(full_name, max_results, extra_attributes)
        if first_name is not None or last_name is not None:
            return self.get_users_by_name(first_name, last_name, max_results, extra_attributes)
        if mail is not None:
            return self.get_users_by_mail(mail, max_results, extra_attributes)
        if group_name is not None:
            return self.get_users_by_group(group_name, extra_attributes)
        return self.get_users_by_identifier(identifier, max_results, extra_attributes)

    # Group searches

    def get_groups_by_user(
        self,
        identifier: Optional[str] = None,
        recursive: bool = False,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[GroupRecord]:
        """
        Groups of the user(s) matching identifier.

        Direct memberships come back as name-only records built from the
        user's memberOf values, so extra_attributes are ignored (with a
        warning) unless recursive is set. With recursive, the memberships are
        followed up to their top-level groups, which come back as full
        records carrying any extra_attributes. When the identifier matches
        several users the picker decides which ones to resolve; their groups
        are concatenated.
        """
        extra_attributes = list(extra_attributes or [])
        if extra_attributes and not recursive:
            logger.warning(
                f"Extra attributes {extra_attributes} are not loaded for direct memberships; "
                f"use recursive to load them for top-level groups"
            )

        query = query_builder.user_by_identifier(
            identifier, max_results=None, edge_attributes=["memberOf"]
        )
        entries = self.provider.find_all(
            self._search_root(USER_SECTION),
            query.search_filter,
            query.size_limit,
            list(query.attributes),
        )
        candidates = [PersonRecord.from_attributes(entry) for entry in entries]
        users = disambiguate(candidates, self.picker, identifier or query.criteria)

        groups = []
        for user in users:
            member_of = as_list(user.get_extra("memberOf"))
            logger.debug(f"{user.distinguished_name} is a direct member of {len(member_of)} groups")
            if recursive:
                groups.extend(self.membership.resolve_root_groups(member_of, extra_attributes))
            else:
                groups.extend(self.membership.direct_groups(member_of))
        return groups

    def get_groups_by_name(
        self,
        name: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[GroupRecord]:
        query = query_builder.group_by_name(name, max_results, extra_attributes)
        return self._find_groups(query)

    def get_groups_by_mail(
        self,
        mail: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[GroupRecord]:
        query = query_builder.group_by_mail(mail, max_results, extra_attributes)
        return self._find_groups(query)

    def get_groups(
        self,
        identifier: Optional[str] = None,
        name: Optional[str] = None,
        mail: Optional[str] = None,
        recursive: bool = False,
        max_results: int = DEFAULT_MAX_RESULTS,
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[GroupRecord]:
        """
        Search groups by user identifier (the default mode), group name or group mail.

        recursive only applies to the identifier mode; max_results does not.

        Raises:
            InvalidArgumentError: If arguments are invalid or several modes are combined
        """
        query_builder.validate_max_results(max_results)
        modes = [
            label
            for label, value in (("identifier", identifier), ("name", name), ("mail", mail))
            if value is not None
        ]
        if len(modes) > 1:
            raise InvalidArgumentError(f"Only one search mode may be used, got: {', '.join(modes)}")
        if recursive and (name is not None or mail is not None):
            raise InvalidArgumentError("recursive can only be used when searching by user identifier")

        if name is not None:
            return self.get_groups_by_name(name, max_results, extra_attributes)
        if mail is not None:
            return self.get_groups_by_mail(mail, max_results, extra_attributes)
        return self.get_groups_by_user(identifier, recursive, extra_attributes)
