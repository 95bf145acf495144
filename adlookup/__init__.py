from .adapters.ldap_adapter import LDAPAdapter
from .config import ADLookupConfig, ConfigStore
from .exceptions import ADLookupError, InvalidArgumentError
from .facade.adlookup_facade import ADLookupFacade
from .models.group_record import GroupRecord
from .models.person_record import PersonRecord

__all__ = [
    'ADLookupFacade',
    'ADLookupConfig',
    'ConfigStore',
    'LDAPAdapter',
    'ADLookupError',
    'InvalidArgumentError',
    'GroupRecord',
    'PersonRecord',
]
