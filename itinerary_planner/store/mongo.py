"""MongoDB destination store backed by a ``2dsphere`` index.

Documents keep the GeoJSON layout::

    {"location": {"type": "Point", "coordinates": [lon, lat]},
     "name": ..., "alias": [...], "description": ..., "emoji": ...,
     "tag": [...], "rating": ...}
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import GEOSPHERE, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from itinerary_planner.config import Settings
from itinerary_planner.errors import StoreError, annotate
from itinerary_planner.schemas import Coordinates, DestinationRecord

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


def _to_document(record: DestinationRecord) -> Dict[str, Any]:
    return {
        "location": {
            "type": "Point",
            "coordinates": [record.coordinates.longitude, record.coordinates.latitude],
        },
        "name": record.canonical_name,
        "alias": list(record.aliases),
        "description": record.description,
        "emoji": record.emoji,
        "tag": list(record.tags),
        "rating": record.rating,
    }


def _from_document(doc: Dict[str, Any]) -> DestinationRecord:
    lon, lat = doc["location"]["coordinates"]
    return DestinationRecord(
        id=str(doc["_id"]),
        coordinates=Coordinates(latitude=lat, longitude=lon),
        canonical_name=doc.get("name") or "",
        aliases=list(doc.get("alias") or []),
        description=doc.get("description") or "",
        emoji=doc.get("emoji") or "",
        tags=list(doc.get("tag") or []),
        rating=doc.get("rating"),
    )


class MongoDestinationStore:
    def __init__(self, collection: Collection, *, ensure_index: bool = True):
        self.collection = collection
        if ensure_index:
            try:
                self.collection.create_index([("location", GEOSPHERE)])
            except PyMongoError as exc:
                raise annotate(StoreError, "Could not create geospatial index", exc) from exc

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoDestinationStore":
        client: MongoClient = MongoClient(settings.mongo_uri)
        logger.info("Using MongoDB destination store %s.%s", settings.mongo_db, settings.mongo_collection)
        return cls(client[settings.mongo_db][settings.mongo_collection])

    def find_nearest(
        self, latitude: float, longitude: float, radius_meters: float, limit: int
    ) -> List[DestinationRecord]:
        query = {
            "location": {
                "$near": {
                    "$geometry": {"type": "Point", "coordinates": [longitude, latitude]},
                    "$maxDistance": radius_meters,
                }
            }
        }
        try:
            docs = list(self.collection.find(query).limit(limit))
        except PyMongoError as exc:
            raise annotate(StoreError, "Nearest-destination query failed", exc) from exc
        return [_from_document(doc) for doc in docs]

    def find_by_coordinate(self, longitude: float, latitude: float) -> Optional[DestinationRecord]:
        try:
            doc = self.collection.find_one({"location.coordinates": [longitude, latitude]})
        except PyMongoError as exc:
            raise annotate(StoreError, "Coordinate lookup failed", exc) from exc
        return _from_document(doc) if doc else None

    def add_alias_and_tags(self, record_id: str, alias: str, tags: Iterable[str]) -> None:
        try:
            oid = ObjectId(record_id)
        except InvalidId as exc:
            raise annotate(StoreError, "Invalid destination id", exc) from exc
        try:
            self.collection.update_one(
                {"_id": oid},
                {"$addToSet": {"alias": alias, "tag": {"$each": list(tags)}}},
            )
        except PyMongoError as exc:
            raise annotate(StoreError, "Alias update failed", exc) from exc

    def create(self, record: DestinationRecord) -> DestinationRecord:
        # Upsert on the coordinate key so racing writers converge on one document.
        doc = _to_document(record)
        key = {"location.coordinates": doc["location"]["coordinates"]}
        update = {
            "$setOnInsert": {
                "location.type": "Point",
                "name": doc["name"],
                "description": doc["description"],
                "emoji": doc["emoji"],
                "rating": doc["rating"],
            },
            "$addToSet": {
                "alias": {"$each": doc["alias"]},
                "tag": {"$each": doc["tag"]},
            },
        }
        try:
            self.collection.update_one(key, update, upsert=True)
            stored = self.collection.find_one(key)
        except PyMongoError as exc:
            raise annotate(StoreError, "Destination insert failed", exc) from exc
        if stored is None:
            raise StoreError("Destination insert failed | document missing after upsert")
        return _from_document(stored)
