from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from .converters import extract_cn, filetime_to_datetime, to_int
from .directory_record import DirectoryRecord


@dataclass
class PersonRecord(DirectoryRecord):
    """
    One directory user entry.

    The manager field holds the manager's distinguished name; manager_name
    and account_expires are computed from the stored fields on every read.
    """

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    employee_id: Optional[str] = None
    account_name: Optional[str] = None
    job_title: Optional[str] = None
    description: Optional[str] = None
    telephone: Optional[str] = None
    mobile: Optional[str] = None
    mail: Optional[str] = None
    manager: Optional[str] = None
    division: Optional[str] = None
    department: Optional[str] = None
    created_date_time: Optional[datetime] = None
    account_expires_raw: Any = field(default=0, repr=False)

    PROJECTED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "distinguished_name",
        "first_name",
        "last_name",
        "full_name",
        "employee_id",
        "account_name",
        "job_title",
        "description",
        "telephone",
        "mobile",
        "mail",
        "manager",
        "division",
        "department",
        "created_date_time",
        "account_expires_raw",
    )
    ATTRIBUTE_ALIASES: ClassVar[Dict[str, str]] = {
        "distinguished_name": "distinguishedName",
        "first_name": "givenName",
        "last_name": "sn",
        "full_name": "name",
        "employee_id": "employeeID",
        "account_name": "sAMAccountName",
        "job_title": "title",
        "telephone": "telephoneNumber",
        "created_date_time": "whenCreated",
        "account_expires_raw": "accountExpires",
    }
    DERIVED_FIELDS: ClassVar[Tuple[str, ...]] = ("manager_name", "account_expires")

    @property
    def manager_name(self) -> str:
        return extract_cn(self.manager)

    @property
    def account_expires(self) -> Union[datetime, str]:
        return filetime_to_datetime(to_int(self.account_expires_raw))
