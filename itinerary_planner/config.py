# itinerary_planner/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    model: str = "gpt-4o-mini"
    google_maps_api_key: str | None = None
    store_backend: str = "memory"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "trip_planner"
    mongo_collection: str = "destinations"
    spacy_model: str = "en_core_web_sm"
    allowed_origins: str = "*"
    log_level: str = "INFO"

    @property
    def allowed_origin_list(self) -> List[str]:
        origins = [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return origins or ["*"]


def load_settings() -> Settings:
    """Read settings from the environment (after any .env file was loaded)."""
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("TRIP_PLANNER_MODEL") or "gpt-4o-mini",
        google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY") or None,
        store_backend=(os.getenv("TRIP_PLANNER_STORE") or "memory").lower(),
        mongo_uri=os.getenv("MONGO_URI") or "mongodb://localhost:27017",
        mongo_db=os.getenv("MONGO_DB") or "trip_planner",
        mongo_collection=os.getenv("MONGO_COLLECTION") or "destinations",
        spacy_model=os.getenv("SPACY_MODEL") or "en_core_web_sm",
        allowed_origins=os.getenv("TRIP_PLANNER_ALLOWED_ORIGINS") or "*",
        log_level=(os.getenv("TRIP_PLANNER_LOG_LEVEL") or "INFO").upper(),
    )
