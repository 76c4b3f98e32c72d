"""Read side of the destination cache."""
from __future__ import annotations

import logging
import math
import os
from typing import Any, List, Protocol

from itinerary_planner.errors import StoreError, annotate
from itinerary_planner.schemas import CacheResult, CandidateStage, Coordinates, DestinationRecord, TripRequest
from itinerary_planner.store.base import MILES_TO_METERS, SEARCH_RADIUS_MILES, DestinationStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# Cached stages never fill a whole trip; the rest is always freshly generated.
DEFAULT_CACHE_RATIO = 0.8


class Geocoding(Protocol):
    async def resolve(self, place: str) -> Coordinates:
        ...


def max_stages_to_fetch(number_of_days: int, stages_per_day: int, ratio: float = DEFAULT_CACHE_RATIO) -> int:
    return math.floor(number_of_days * stages_per_day * ratio)


def adjusted_stages_per_day(stages_per_day: int, cached_count: int, number_of_days: int) -> int:
    """Per-day stages still to generate once ``cached_count`` came from cache."""
    cached_per_day = cached_count // number_of_days
    return max(0, stages_per_day - cached_per_day)


def record_to_stage(record: DestinationRecord, position: int) -> CandidateStage:
    return CandidateStage(
        index=position,
        location=record.label(),
        description=record.description,
        emoji=record.emoji,
        latitude=record.coordinates.latitude,
        longitude=record.coordinates.longitude,
        rating=record.rating,
    )


def records_to_cache_result(records: List[DestinationRecord]) -> CacheResult:
    return CacheResult(stages=[record_to_stage(record, i) for i, record in enumerate(records, 1)])


class CacheProbe:
    def __init__(
        self,
        store: DestinationStore,
        geocoder: Geocoding | Any,
        *,
        ratio: float = DEFAULT_CACHE_RATIO,
        radius_miles: float = SEARCH_RADIUS_MILES,
    ):
        self.store = store
        self.geocoder = geocoder
        self.ratio = ratio
        self.radius_meters = radius_miles * MILES_TO_METERS

    def find_closest_destinations(self, latitude: float, longitude: float, limit: int) -> List[DestinationRecord]:
        try:
            return self.store.find_nearest(latitude, longitude, self.radius_meters, limit)
        except StoreError as exc:
            raise annotate(StoreError, "Could not find closest destinations", exc) from exc

    async def probe(self, request: TripRequest) -> CacheResult | None:
        """Return cached candidate stages near the destination.

        ``None`` means the trip is too small for the cache to contribute and no
        query was issued. A ``GeocodeError`` propagates as-is.
        """
        coords = await self.geocoder.resolve(request.destination)

        limit = max_stages_to_fetch(request.number_of_days, request.stages_per_day, self.ratio)
        if limit == 0:
            logger.info("Trip capacity too small for cache lookup; skipping")
            return None

        records = self.find_closest_destinations(coords.latitude, coords.longitude, limit)
        logger.info("Cache returned %d of at most %d stage(s) near %s", len(records), limit, request.destination)
        return records_to_cache_result(records)
