from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from .attribute_map import project


@dataclass
class DirectoryRecord:
    """Common behaviour for typed directory records built from attribute bags."""

    distinguished_name: Optional[str] = None
    extra_attributes: Dict[str, Any] = field(default_factory=dict, repr=False)

    PROJECTED_FIELDS: ClassVar[Tuple[str, ...]] = ("distinguished_name",)
    ATTRIBUTE_ALIASES: ClassVar[Dict[str, str]] = {
        "distinguished_name": "distinguishedName"
    }
    DERIVED_FIELDS: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]):
        """
        Build a record from one raw directory attribute bag.

        Mapped attributes become fields (collapsed to a scalar when they hold
        a single value); anything else is kept in extra_attributes under its
        raw attribute name.
        """
        values, extras = project(cls, attributes)
        return cls(extra_attributes=extras, **values)

    def get_extra(self, name: str, default: Any = None) -> Any:
        """Look up an extra attribute by raw name, ignoring case."""
        if name in self.extra_attributes:
            return self.extra_attributes[name]
        lowered = name.lower()
        for key, value in self.extra_attributes.items():
            if key.lower() == lowered:
                return value
        return default

    def to_dict(self, include_hidden: bool = False) -> Dict[str, Any]:
        """Flatten the record, its derived fields and extras into one dictionary."""
        result = {}
        for f in fields(self):
            if f.name == "extra_attributes" or (not f.repr and not include_hidden):
                continue
            result[f.name] = getattr(self, f.name)
        for name in self.DERIVED_FIELDS:
            result[name] = getattr(self, name)
        result.update(self.extra_attributes)
        return result
