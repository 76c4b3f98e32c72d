"""Write side of the destination cache."""
from __future__ import annotations

import logging
import os
from typing import List, Optional

from itinerary_planner.agents.tag_extractor import TagExtractor
from itinerary_planner.errors import StoreError, annotate
from itinerary_planner.schemas import Coordinates, DestinationRecord, ItineraryStage
from itinerary_planner.store.base import DestinationStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class CacheWriter:
    def __init__(self, store: DestinationStore, tag_extractor: Optional[TagExtractor] = None):
        self.store = store
        self.tag_extractor = tag_extractor or TagExtractor()

    def cache_stage(self, stage: ItineraryStage, display_name: str, notes: str | None) -> None:
        """Create or merge the destination record for one finalized stage.

        ``display_name`` is whatever the user asked for as the destination;
        it becomes the canonical name of a new record. Existing records only
        gain the stage label as an alias plus any new tags.
        """
        if not stage.has_coordinates():
            raise ValueError(f"stage {stage.location_name!r} has no coordinates to cache under")

        tags = self._tags_for(notes)
        try:
            existing = self.store.find_by_coordinate(stage.longitude, stage.latitude)

            if existing is not None:
                self.store.add_alias_and_tags(existing.id, stage.location_name, tags)
                logger.debug("Merged alias %s into destination %s", stage.location_name, existing.id)
                return

            self.store.create(
                DestinationRecord(
                    coordinates=Coordinates(latitude=stage.latitude, longitude=stage.longitude),
                    canonical_name=display_name,
                    aliases=[stage.location_name],
                    description=stage.description,
                    emoji=stage.emoji,
                    tags=tags,
                    rating=stage.rating,
                )
            )
            logger.debug("Cached new destination %s", stage.location_name)
        except StoreError as exc:
            raise annotate(StoreError, "Could not cache stage", exc) from exc

    def _tags_for(self, notes: str | None) -> List[str]:
        # Tags are enrichment only; a broken NLP pipeline must not stop the write.
        try:
            return sorted(self.tag_extractor.extract(notes))
        except Exception:
            logger.warning("Tag extraction failed; caching stage without tags", exc_info=True)
            return []
