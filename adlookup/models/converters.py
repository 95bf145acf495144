"""
Value conversions shared by the directory record models.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

# Active Directory large-integer times count 100-nanosecond intervals since 1601-01-01 UTC
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
FILETIME_MAX = (
    (datetime.max.replace(tzinfo=timezone.utc) - FILETIME_EPOCH) // datetime.resolution
) * 10
NEVER = "Never"


def extract_cn(distinguished_name: Optional[str]) -> str:
    """
    Extract the common name from a distinguished name.

    Takes everything between the leading 'CN=' and the first ',OU' and
    removes escape backslashes, so 'CN=Jane\\, Doe,OU=Staff,DC=example,DC=com'
    becomes 'Jane, Doe'.

    Args:
        distinguished_name: Distinguished name of a directory entry

    Returns:
        str: The common name, or an empty string when the DN is empty or
             has no OU component
    """
    if not distinguished_name:
        return ""

    end = distinguished_name.find(",OU")
    if end < 0:
        return ""

    return distinguished_name[3:end].replace("\\", "")


def to_int(value: Any) -> int:
    """Coerce a raw integer attribute (int, str or bytes) to int, 0 when empty."""
    if value is None or value == "" or value == b"":
        return 0
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return int(value)


def filetime_to_datetime(ticks: int) -> Union[datetime, str]:
    """
    Convert an Active Directory large-integer time to a UTC datetime.

    Returns 'Never' for 0 and for tick counts beyond the largest date
    datetime can represent (AD stores 0x7FFFFFFFFFFFFFFF for accounts
    that never expire).
    """
    if ticks <= 0 or ticks > FILETIME_MAX:
        return NEVER
    return FILETIME_EPOCH + timedelta(microseconds=ticks // 10)
