from .base import DirectorySearchProvider
from .ldap_adapter import LDAPAdapter

__all__ = ['DirectorySearchProvider', 'LDAPAdapter']
