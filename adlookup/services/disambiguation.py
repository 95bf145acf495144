import logging
from typing import List, Optional, Sequence

from ..models.person_record import PersonRecord
from ..picker import Picker

logger = logging.getLogger(__name__)


def disambiguate(
    candidates: Sequence[PersonRecord], picker: Optional[Picker], description: str
) -> List[PersonRecord]:
    """
    Narrow a by-identifier user match down to the users to work with.

    No match logs a warning and returns an empty list, one match is used as
    is, and several matches are handed to the picker. A declined or empty
    selection is treated like no match.
    """
    if not candidates:
        logger.warning(f"No users found matching '{description}'")
        return []

    if len(candidates) == 1:
        return list(candidates)

    logger.info(f"{len(candidates)} users match '{description}', asking for a selection")
    chosen = picker.select(candidates) if picker is not None else []
    if not chosen:
        logger.warning(f"No user selected for '{description}'")
        return []

    return list(chosen)
