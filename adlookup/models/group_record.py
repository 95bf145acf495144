import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Dict, Optional, Tuple

from .converters import extract_cn
from .directory_record import DirectoryRecord

SHORT_INFO_LIMIT = 75
SHORT_INFO_KEEP = 72
_LINE_BREAKS = re.compile(r"[\r\n]+")


@dataclass
class GroupRecord(DirectoryRecord):
    """One directory group entry."""

    name: Optional[str] = None
    info: Optional[str] = None
    mail: Optional[str] = None
    created_date_time: Optional[datetime] = field(default=None, repr=False)

    PROJECTED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "distinguished_name",
        "name",
        "info",
        "mail",
        "created_date_time",
    )
    ATTRIBUTE_ALIASES: ClassVar[Dict[str, str]] = {
        "distinguished_name": "distinguishedName",
        "name": "cn",
        "created_date_time": "whenCreated",
    }
    DERIVED_FIELDS: ClassVar[Tuple[str, ...]] = ("short_info",)

    @classmethod
    def from_distinguished_name(cls, distinguished_name: str) -> "GroupRecord":
        """Build a name-only record from a memberOf entry without a directory lookup."""
        return cls(
            distinguished_name=distinguished_name, name=extract_cn(distinguished_name)
        )

    @property
    def short_info(self) -> Optional[str]:
        """Single-line info, line breaks joined with '; ' and cut to 75 characters."""
        if not self.info:
            return None
        info = self.info if isinstance(self.info, str) else "\n".join(self.info)
        text = _LINE_BREAKS.sub("; ", info)
        if len(text) > SHORT_INFO_LIMIT:
            text = text[:SHORT_INFO_KEEP] + "..."
        return text
