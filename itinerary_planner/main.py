from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from itinerary_planner.agents.tag_extractor import SpacyNounExtractor, TagExtractor
from itinerary_planner.config import Settings, load_settings
from itinerary_planner.errors import GenerationError, GeocodeError, StoreError
from itinerary_planner.llm import OpenAIStageGenerator, extract_trip_metadata
from itinerary_planner.orchestrator import TripPlanner
from itinerary_planner.schemas import CacheItineraryRequest, Itinerary, MetadataPrompt, TripMetadata, TripRequest
from itinerary_planner.store.memory import InMemoryDestinationStore
from itinerary_planner.tools.geocoding import Geocoder

settings = load_settings()

app = FastAPI(title="Trip Planner Itinerary API")

# Local UIs (Vite dev server, static builds) call the API directly; scope
# this via TRIP_PLANNER_ALLOWED_ORIGINS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def build_planner(cfg: Settings) -> TripPlanner:
    if cfg.store_backend == "mongo":
        from itinerary_planner.store.mongo import MongoDestinationStore

        store: Any = MongoDestinationStore.from_settings(cfg)
    else:
        store = InMemoryDestinationStore()
    return TripPlanner(
        store=store,
        geocoder=Geocoder(api_key=cfg.google_maps_api_key),
        generator=OpenAIStageGenerator(model=cfg.model, api_key=cfg.openai_api_key),
        tag_extractor=TagExtractor(SpacyNounExtractor(cfg.spacy_model)),
    )


@lru_cache(maxsize=1)
def get_planner() -> TripPlanner:
    """One planner (and store connection) per process."""
    return build_planner(settings)


@app.post("/api/trips/generate")
async def api_generate_trip(
    trip: TripRequest, planner: TripPlanner = Depends(get_planner)
) -> Itinerary:
    try:
        return await planner.generate_trip_with_cache(trip)
    except GeocodeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.post("/api/trips/metadata")
async def api_trip_metadata(body: MetadataPrompt) -> TripMetadata:
    try:
        return extract_trip_metadata(body.prompt, model=settings.model)
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.post("/api/trips/cache")
async def api_cache_itinerary(
    body: CacheItineraryRequest, planner: TripPlanner = Depends(get_planner)
) -> Dict[str, Any]:
    """Called once the user accepts an itinerary; grows the destination cache."""
    cached = planner.cache_itinerary(body.itinerary, body.display_name, body.notes)
    return {"cached": cached, "total": body.itinerary.stage_count()}
