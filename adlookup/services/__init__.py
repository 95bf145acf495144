from .disambiguation import disambiguate
from .group_membership_service import GroupMembershipService

__all__ = ['GroupMembershipService', 'disambiguate']
