from .group_record import GroupRecord
from .person_record import PersonRecord

__all__ = ['GroupRecord', 'PersonRecord']
