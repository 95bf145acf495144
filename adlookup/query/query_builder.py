"""
Directory query construction.

Each builder validates its arguments, then returns a DirectoryQuery holding
the criteria filter, the attribute load set and the result cap. Wildcards
('*', '?', '[ac]', '[a-c]') in search strings are passed through to the
directory unchanged. No directory access happens here.
"""

import getpass
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ldap3.utils.conv import escape_filter_chars

from ..exceptions import InvalidArgumentError
from ..models.attribute_map import get_load_attributes, merge_attribute_names
from ..models.group_record import GroupRecord
from ..models.person_record import PersonRecord

logger = logging.getLogger(__name__)

USER_CLASS = "User"
GROUP_CLASS = "Group"

DEFAULT_MAX_RESULTS = 20
MIN_MAX_RESULTS = 1
MAX_MAX_RESULTS = 1000

MIN_FULL_NAME_LENGTH = 4
MIN_NAME_PART_LENGTH = 2
MIN_MAIL_LENGTH = 2
MIN_GROUP_NAME_LENGTH = 2


@dataclass(frozen=True)
class DirectoryQuery:
    """A ready-to-run directory search: filter, attributes to load and result cap."""

    criteria: str
    attributes: Tuple[str, ...]
    size_limit: Optional[int] = None
    object_class: Optional[str] = None

    @property
    def search_filter(self) -> str:
        if self.object_class is None:
            return self.criteria
        return f"(&(objectClass={self.object_class}){self.criteria})"


def validate_max_results(max_results: Optional[int]) -> Optional[int]:
    """Check a result cap is within 1-1000; None means no cap."""
    if max_results is None:
        return None
    if (
        isinstance(max_results, bool)
        or not isinstance(max_results, int)
        or not MIN_MAX_RESULTS <= max_results <= MAX_MAX_RESULTS
    ):
        raise InvalidArgumentError(
            f"max_results must be between {MIN_MAX_RESULTS} and {MAX_MAX_RESULTS}, got {max_results!r}"
        )
    return max_results


def require_min_length(value: Optional[str], minimum: int, label: str) -> str:
    if value is None or len(value) < minimum:
        raise InvalidArgumentError(
            f"{label} must be at least {minimum} characters, got {value!r}"
        )
    return value


def default_identifier() -> str:
    """Login name of the invoking user."""
    return getpass.getuser()


def _user_query(
    criteria: str,
    max_results: Optional[int],
    extra_attributes: Optional[Iterable[str]],
    edge_attributes: Iterable[str] = (),
) -> DirectoryQuery:
    attributes = merge_attribute_names(
        get_load_attributes(PersonRecord), edge_attributes, extra_attributes
    )
    query = DirectoryQuery(
        criteria=criteria,
        attributes=tuple(attributes),
        size_limit=validate_max_results(max_results),
        object_class=USER_CLASS,
    )
    logger.debug(f"User query: filter='{query.search_filter}', limit={query.size_limit}")
    return query


def _group_query(
    criteria: str,
    max_results: Optional[int],
    extra_attributes: Optional[Iterable[str]],
    edge_attributes: Iterable[str] = (),
) -> DirectoryQuery:
    attributes = merge_attribute_names(
        get_load_attributes(GroupRecord), edge_attributes, extra_attributes
    )
    query = DirectoryQuery(
        criteria=criteria,
        attributes=tuple(attributes),
        size_limit=validate_max_results(max_results),
        object_class=GROUP_CLASS,
    )
    logger.debug(f"Group query: filter='{query.search_filter}', limit={query.size_limit}")
    return query


def user_by_identifier(
    identifier: Optional[str] = None,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    extra_attributes: Optional[Iterable[str]] = None,
    edge_attributes: Iterable[str] = (),
) -> DirectoryQuery:
    """
    Match users on logon name or employee ID.

    Args:
        identifier: Logon name or employee ID, wildcards allowed (defaults to
                    the invoking user's login name)
        max_results: Result cap, 1-1000, or None for no cap
        extra_attributes: Additional attributes to load
        edge_attributes: Membership edge attributes to load (e.g. memberOf)
    """
    identifier = identifier or default_identifier()
    criteria = f"(|(samAccountName={identifier})(employeeID={identifier}))"
    return _user_query(criteria, max_results, extra_attributes, edge_attributes)


def user_by_full_name(
    full_name: str,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    extra_attributes: Optional[Iterable[str]] = None,
) -> DirectoryQuery:
    require_min_length(full_name, MIN_FULL_NAME_LENGTH, "Full name")
    return _user_query(f"(name={full_name})", max_results, extra_attributes)


def user_by_first_last_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    extra_attributes: Optional[Iterable[str]] = None,
) -> DirectoryQuery:
    """Match users on first name, last name, or both (both must match)."""
    if first_name is None and last_name is None:
        raise InvalidArgumentError("At least one of first name or last name is required")

    parts = []
    if first_name is not None:
        require_min_length(first_name, MIN_NAME_PART_LENGTH, "First name")
        parts.append(f"(givenName={first_name})")
    if last_name is not None:
        require_min_length(last_name, MIN_NAME_PART_LENGTH, "Last name")
        parts.append(f"(sn={last_name})")

    criteria = parts[0] if len(parts) == 1 else f"(&{''.join(parts)})"
    return _user_query(criteria, max_results, extra_attributes)


def user_by_mail(
    mail: str,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    extra_attributes: Optional[Iterable[str]] = None,
) -> DirectoryQuery:
    require_min_length(mail, MIN_MAIL_LENGTH, "Mail")
    return _user_query(f"(mail={mail})", max_results, extra_attributes)


def group_by_name(
    name: str,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    extra_attributes: Optional[Iterable[str]] = None,
    edge_attributes: Iterable[str] = (),
) -> DirectoryQuery:
    require_min_length(name, MIN_GROUP_NAME_LENGTH, "Group name")
    return _group_query(f"(cn={name})", max_results, extra_attributes, edge_attributes)


def group_by_mail(
    mail: str,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    extra_attributes: Optional[Iterable[str]] = None,
) -> DirectoryQuery:
    require_min_length(mail, MIN_MAIL_LENGTH, "Group mail")
    return _group_query(f"(mail={mail})", max_results, extra_attributes)


def entry_by_distinguished_name(
    distinguished_name: str, attributes: Iterable[str]
) -> DirectoryQuery:
    """Exact match on one entry's distinguished name, used by membership traversal."""
    criteria = f"(distinguishedName={escape_filter_chars(distinguished_name)})"
    return DirectoryQuery(criteria=criteria, attributes=tuple(attributes))
