"""
Group membership traversal over member / memberOf edges.

Both traversals use an explicit last-in-first-out stack and make one
directory round-trip per popped entry, so results come out in stack-pop
order rather than breadth-first or alphabetical order.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from ..adapters.base import DirectorySearchProvider
from ..models.attribute_map import (
    as_list,
    get_attribute,
    get_load_attributes,
    merge_attribute_names,
    without_attributes,
)
from ..models.group_record import GroupRecord
from ..models.person_record import PersonRecord
from ..query import query_builder

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10000

PERSON_CLASSES = frozenset({"user", "person", "inetorgperson"})


def entry_kind(attributes: Mapping[str, Any]) -> str:
    """Classify an entry as 'group', 'person' or 'other' from its objectClass values."""
    classes = [str(value).lower() for value in as_list(get_attribute(attributes, "objectClass"))]
    if "group" in classes:
        return "group"
    if "computer" not in classes and PERSON_CLASSES.intersection(classes):
        return "person"
    return "other"


class GroupMembershipService:
    """
    Expands group membership through the directory.

    Args:
        provider: Directory search provider used for per-entry lookups
        max_steps: Upper bound on directory round-trips per traversal
    """

    def __init__(self, provider: DirectorySearchProvider, max_steps: int = DEFAULT_MAX_STEPS):
        self.provider = provider
        self.max_steps = max_steps

    def _fetch(self, distinguished_name: str, attributes: Iterable[str]) -> Optional[Dict[str, Any]]:
        query = query_builder.entry_by_distinguished_name(distinguished_name, attributes)
        # The entry itself is the narrowest search root that is guaranteed to contain it
        return self.provider.find_one(
            distinguished_name, query.search_filter, list(query.attributes)
        )

    def flatten_members(
        self,
        member_dns: Iterable[str],
        extra_attributes: Optional[Iterable[str]] = None,
        visited: Optional[Set[str]] = None,
    ) -> List[PersonRecord]:
        """
        List every user reachable from a group's member edges, nested groups included.

        Each distinguished name is expanded at most once, which also breaks
        membership cycles. Groups are expanded but not emitted; entries that
        are neither users nor groups are skipped with a warning.

        Args:
            member_dns: The starting group's member distinguished names
            extra_attributes: Additional attributes to load for each user
            visited: Visited set to share across several starting groups

        Returns:
            List[PersonRecord]: Users in stack-pop order
        """
        extra_attributes = list(extra_attributes or [])
        attributes = merge_attribute_names(
            get_load_attributes(PersonRecord), ["objectClass", "member"], extra_attributes
        )
        edge_attributes = [
            name for name in ("objectClass", "member")
            if name.lower() not in {extra.lower() for extra in extra_attributes}
        ]

        visited = set() if visited is None else visited
        stack = list(member_dns)
        users = []
        steps = 0

        while stack:
            distinguished_name = stack.pop()
            key = distinguished_name.lower()
            if key in visited:
                continue
            visited.add(key)

            if steps >= self.max_steps:
                logger.warning(
                    f"Membership expansion stopped after {steps} lookups; "
                    f"{len(users)} users collected so far"
                )
                break
            steps += 1

            entry = self._fetch(distinguished_name, attributes)
            if entry is None:
                logger.warning(f"Member not found in directory: {distinguished_name}")
                continue

            kind = entry_kind(entry)
            if kind == "person":
                users.append(
                    PersonRecord.from_attributes(without_attributes(entry, edge_attributes))
                )
            elif kind == "group":
                nested = as_list(get_attribute(entry, "member"))
                logger.debug(f"Expanding nested group {distinguished_name} ({len(nested)} members)")
                stack.extend(nested)
            else:
                logger.warning(
                    f"Skipping member {distinguished_name}: unsupported object class "
                    f"{as_list(get_attribute(entry, 'objectClass'))}"
                )

        logger.info(f"Flattened membership: {len(users)} users from {len(visited)} entries")
        return users

    def resolve_root_groups(
        self,
        member_of_dns: Iterable[str],
        extra_attributes: Optional[Iterable[str]] = None,
    ) -> List[GroupRecord]:
        """
        Walk memberOf edges upward and return the top-level groups reached.

        Groups reachable along several paths are emitted once per path.

        Args:
            member_of_dns: A user's direct memberOf distinguished names
            extra_attributes: Additional attributes to load for each root group

        Returns:
            List[GroupRecord]: Root groups (groups with no parent group)
        """
        extra_attributes = list(extra_attributes or [])
        attributes = merge_attribute_names(
            get_load_attributes(GroupRecord), ["memberOf"], extra_attributes
        )
        edge_attributes = [
            name for name in ("memberOf",)
            if name.lower() not in {extra.lower() for extra in extra_attributes}
        ]
        stack = list(member_of_dns)
        roots = []
        steps = 0

        while stack:
            if steps >= self.max_steps:
                logger.warning(
                    f"Root group resolution stopped after {steps} lookups; "
                    f"{len(roots)} groups collected so far"
                )
                break
            steps += 1

            distinguished_name = stack.pop()
            entry = self._fetch(distinguished_name, attributes)
            if entry is None:
                logger.warning(f"Group not found in directory: {distinguished_name}")
                continue

            parents = as_list(get_attribute(entry, "memberOf"))
            if parents:
                logger.debug(f"Group {distinguished_name} has {len(parents)} parent groups")
                stack.extend(parents)
            else:
                roots.append(GroupRecord.from_attributes(without_attributes(entry, edge_attributes)))

        logger.info(f"Resolved {len(roots)} root groups")
        return roots

    @staticmethod
    def direct_groups(member_of_dns: Iterable[str]) -> List[GroupRecord]:
        """Name-only records for a user's direct memberships, without directory lookups."""
        return [GroupRecord.from_distinguished_name(dn) for dn in member_of_dns]
