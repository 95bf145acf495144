import logging
from typing import List, Protocol, Sequence

from .models.person_record import PersonRecord

logger = logging.getLogger(__name__)


class Picker(Protocol):
    """Chooses among several directory matches; an empty list means none chosen."""

    def select(self, candidates: Sequence[PersonRecord]) -> List[PersonRecord]:
        ...


class ConsolePicker:
    """Numbered-list picker on the terminal."""

    def select(self, candidates: Sequence[PersonRecord]) -> List[PersonRecord]:
        print(f"\n{len(candidates)} matching users:")
        for index, candidate in enumerate(candidates, 1):
            print(
                f"  {index}. {candidate.account_name or ''}  {candidate.full_name or ''}"
                f"  ({candidate.distinguished_name})"
            )

        try:
            answer = input("Select users (e.g. 1,3 or 'all', Enter to cancel): ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            logger.info("Selection cancelled by user")
            return []

        if not answer:
            return []
        if answer == "all":
            return list(candidates)

        chosen = []
        for token in answer.replace(" ", ",").split(","):
            if not token:
                continue
            if not token.isdigit() or not 1 <= int(token) <= len(candidates):
                logger.warning(f"Ignoring invalid selection: {token!r}")
                continue
            candidate = candidates[int(token) - 1]
            if candidate not in chosen:
                chosen.append(candidate)
        return chosen
