"""In-process destination store used for local runs and tests."""
from __future__ import annotations

import math
import threading
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from itinerary_planner.errors import StoreError
from itinerary_planner.schemas import DestinationRecord
from itinerary_planner.store.base import merge_unique

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Great-circle distance in meters between two (lat, lon) points."""
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


class InMemoryDestinationStore:
    def __init__(self, records: Iterable[DestinationRecord] | None = None):
        self._records: Dict[str, DestinationRecord] = {}
        self._lock = threading.Lock()
        for record in records or []:
            self.create(record)

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> List[DestinationRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]

    def find_nearest(
        self, latitude: float, longitude: float, radius_meters: float, limit: int
    ) -> List[DestinationRecord]:
        if limit <= 0:
            raise StoreError(f"limit must be positive, got {limit}")
        origin = (latitude, longitude)
        with self._lock:
            scored = []
            for record in self._records.values():
                point = (record.coordinates.latitude, record.coordinates.longitude)
                distance = haversine_m(origin, point)
                if distance <= radius_meters:
                    scored.append((distance, record))
        # sorted() is stable, so ties keep insertion order.
        scored.sort(key=lambda item: item[0])
        return [record.model_copy(deep=True) for _, record in scored[:limit]]

    def find_by_coordinate(self, longitude: float, latitude: float) -> Optional[DestinationRecord]:
        with self._lock:
            for record in self._records.values():
                if record.coordinates.longitude == longitude and record.coordinates.latitude == latitude:
                    return record.model_copy(deep=True)
        return None

    def add_alias_and_tags(self, record_id: str, alias: str, tags: Iterable[str]) -> None:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise StoreError(f"no destination with id {record_id}")
            record.aliases = merge_unique(record.aliases, [alias])
            record.tags = merge_unique(record.tags, tags)

    def create(self, record: DestinationRecord) -> DestinationRecord:
        with self._lock:
            for existing in self._records.values():
                if existing.coordinates == record.coordinates:
                    # Same key: fold into the existing record instead of duplicating.
                    existing.aliases = merge_unique(existing.aliases, record.aliases)
                    existing.tags = merge_unique(existing.tags, record.tags)
                    return existing.model_copy(deep=True)
            stored = record.model_copy(
                deep=True,
                update={
                    "id": record.id or uuid.uuid4().hex,
                    "aliases": merge_unique([], record.aliases),
                    "tags": merge_unique([], record.tags),
                },
            )
            self._records[stored.id] = stored
            return stored.model_copy(deep=True)
