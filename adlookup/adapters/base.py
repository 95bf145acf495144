from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence


class DirectorySearchProvider(Protocol):
    """Contract for the directory search backend used by the lookup core."""

    def find_all(
        self,
        search_root: Optional[str],
        search_filter: str,
        size_limit: Optional[int],
        attributes: Sequence[str],
    ) -> List[Dict[str, Any]]:
        ...

    def find_one(
        self,
        search_root: Optional[str],
        search_filter: str,
        attributes: Sequence[str],
    ) -> Optional[Dict[str, Any]]:
        ...
