# itinerary_planner/orchestrator.py
from __future__ import annotations

import os
from typing import Any, List
import logging

from itinerary_planner.agents.cache_probe import (
    DEFAULT_CACHE_RATIO,
    CacheProbe,
    adjusted_stages_per_day,
)
from itinerary_planner.agents.cache_writer import CacheWriter
from itinerary_planner.agents.combiner import combine_stages
from itinerary_planner.agents.tag_extractor import TagExtractor
from itinerary_planner.errors import GenerationError, StoreError, annotate
from itinerary_planner.llm import StageGenerator
from itinerary_planner.schemas import CacheResult, GeneratedResult, Itinerary, TripRequest
from itinerary_planner.store.base import SEARCH_RADIUS_MILES, DestinationStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class TripPlanner:
    """Cache-first itinerary generation for a single trip request at a time.

    Every collaborator is passed in; the planner keeps no per-request state,
    so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        store: DestinationStore,
        geocoder: Any,
        generator: StageGenerator,
        tag_extractor: TagExtractor | None = None,
        *,
        cache_ratio: float = DEFAULT_CACHE_RATIO,
        radius_miles: float = SEARCH_RADIUS_MILES,
    ):
        self.store = store
        self.generator = generator
        self.probe = CacheProbe(store, geocoder, ratio=cache_ratio, radius_miles=radius_miles)
        self.writer = CacheWriter(store, tag_extractor)

    async def try_cache(self, request: TripRequest) -> CacheResult | None:
        return await self.probe.probe(request)

    async def generate_trip_with_cache(self, request: TripRequest) -> Itinerary:
        """Serve what the cache can, generate the rest, merge into days."""
        logger.info(
            "Trip generation start: destination=%s, days=%d, stages_per_day=%d",
            request.destination,
            request.number_of_days,
            request.stages_per_day,
        )
        cached = await self.try_cache(request)

        avoid_locations: List[str] = []
        left_to_fetch = request.model_copy()
        if cached is not None:
            avoid_locations = cached.locations()
            left_to_fetch = request.model_copy(
                update={
                    "stages_per_day": adjusted_stages_per_day(
                        request.stages_per_day, len(cached.stages), request.number_of_days
                    )
                }
            )

        generated = self._generate(left_to_fetch, avoid_locations)

        itinerary = combine_stages(
            cached.stages if cached is not None else [],
            generated.stages,
            request.number_of_days,
            request.stages_per_day,
        )
        logger.info(
            "Trip generation done: %d cached + %d generated -> %d placed stage(s)",
            len(cached.stages) if cached is not None else 0,
            len(generated.stages),
            itinerary.stage_count(),
        )
        return itinerary

    def _generate(self, request: TripRequest, avoid_locations: List[str]) -> GeneratedResult:
        if request.stages_per_day == 0:
            logger.info("Nothing left to generate; skipping generator call")
            return GeneratedResult()
        try:
            return self.generator.generate(request, avoid_locations)
        except Exception as exc:
            raise annotate(GenerationError, "Error while generating trip", exc) from exc

    def cache_itinerary(self, itinerary: Itinerary, display_name: str, notes: str | None = None) -> int:
        """Write every placed stage back to the store.

        Best-effort: a failing stage is logged and skipped so a finished
        itinerary is never lost to a cache write. Returns the stages written.
        """
        written = 0
        for stage in itinerary.iter_stages():
            if not stage.has_coordinates():
                logger.warning("Skipping cache write for %s: no coordinates", stage.location_name)
                continue
            try:
                self.writer.cache_stage(stage, display_name, notes)
            except StoreError:
                logger.warning("Cache write failed for %s", stage.location_name, exc_info=True)
                continue
            written += 1
        logger.info("Cached %d of %d stage(s) for %s", written, itinerary.stage_count(), display_name)
        return written
