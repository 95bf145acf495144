"""
Attribute projection between raw directory attribute bags and record fields.

Each record kind declares PROJECTED_FIELDS and an ATTRIBUTE_ALIASES table
naming the directory attribute behind every field whose name differs from
the attribute. The resulting lookup tables are built on first use and kept
for the life of the process; the record schema is fixed, so they are never
rebuilt.
"""

import functools
import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple

logger = logging.getLogger(__name__)

# ADSI bookkeeping attribute, never part of a record
EXCLUDED_ATTRIBUTES = frozenset({"adspath"})


@functools.lru_cache(maxsize=None)
def get_attribute_map(record_type: type) -> Mapping[str, str]:
    """
    Build the lowercase attribute name -> field name table for a record kind.

    Args:
        record_type: Record class declaring PROJECTED_FIELDS and ATTRIBUTE_ALIASES

    Returns:
        Mapping[str, str]: Read-only projection table
    """
    aliases = record_type.ATTRIBUTE_ALIASES
    mapping = {}
    for field_name in record_type.PROJECTED_FIELDS:
        attribute = aliases.get(field_name, field_name)
        mapping[attribute.lower()] = field_name

    logger.debug(
        f"Built attribute map for {record_type.__name__}: {len(mapping)} attributes"
    )
    return MappingProxyType(mapping)


@functools.lru_cache(maxsize=None)
def get_load_attributes(record_type: type) -> Tuple[str, ...]:
    """Directory attribute names to request when loading a record kind."""
    aliases = record_type.ATTRIBUTE_ALIASES
    return tuple(aliases.get(name, name) for name in record_type.PROJECTED_FIELDS)


def collapse(value: Any) -> Any:
    """Collapse a single-valued attribute to a scalar; keep multi-valued ones as a list."""
    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            return None
        if len(value) == 1:
            return value[0]
        return list(value)
    return value


def as_list(value: Any) -> List[Any]:
    """Normalize an attribute value (scalar, list or None) to a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def project(
    record_type: type, attributes: Mapping[str, Any]
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Split a raw attribute bag into record field values and extra attributes.

    Args:
        record_type: Record class to project onto
        attributes: Raw attribute bag (attribute name -> value or list of values)

    Returns:
        Tuple of (field values keyed by field name, extra attributes keyed by
        raw attribute name)
    """
    attribute_map = get_attribute_map(record_type)
    fields = {}
    extras = {}

    for attribute, raw_value in attributes.items():
        value = collapse(raw_value)
        key = attribute.lower()

        if key in attribute_map:
            if value is not None:
                fields[attribute_map[key]] = value
        elif key not in EXCLUDED_ATTRIBUTES:
            extras[attribute] = value

    return fields, extras


def merge_attribute_names(*groups: Iterable[str]) -> List[str]:
    """Concatenate attribute name lists, dropping case-insensitive duplicates."""
    seen = set()
    merged = []
    for group in groups:
        for name in group or ():
            if name.lower() not in seen:
                seen.add(name.lower())
                merged.append(name)
    return merged


def get_attribute(attributes: Mapping[str, Any], name: str) -> Any:
    """Case-insensitive lookup of one attribute in a raw attribute bag."""
    if name in attributes:
        return attributes[name]
    lowered = name.lower()
    for key, value in attributes.items():
        if key.lower() == lowered:
            return value
    return None


def without_attributes(
    attributes: Mapping[str, Any], names: Iterable[str]
) -> Dict[str, Any]:
    """Copy of an attribute bag minus the given attribute names (case-insensitive)."""
    dropped = {name.lower() for name in names}
    return {key: value for key, value in attributes.items() if key.lower() not in dropped}
