"""Contract every destination store backend satisfies."""
from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from itinerary_planner.schemas import DestinationRecord

MILES_TO_METERS = 1609.34
SEARCH_RADIUS_MILES = 30


class DestinationStore(Protocol):
    """Geospatially indexed collection of previously generated stages.

    Coordinates are the dedup key: a backend keeps at most one record per
    exact ``(longitude, latitude)`` pair. Aliases and tags only ever grow.
    Backends raise ``StoreError`` for any persistence failure.
    """

    def find_nearest(
        self, latitude: float, longitude: float, radius_meters: float, limit: int
    ) -> List[DestinationRecord]:
        """Return up to ``limit`` records within the radius, closest first."""
        ...

    def find_by_coordinate(self, longitude: float, latitude: float) -> Optional[DestinationRecord]:
        ...

    def add_alias_and_tags(self, record_id: str, alias: str, tags: Iterable[str]) -> None:
        """Set-union ``alias`` and ``tags`` into an existing record."""
        ...

    def create(self, record: DestinationRecord) -> DestinationRecord:
        ...


def merge_unique(existing: Iterable[str], additions: Iterable[str]) -> List[str]:
    """Union preserving first-insertion order."""
    merged: List[str] = []
    for value in list(existing) + list(additions):
        if value not in merged:
            merged.append(value)
    return merged
