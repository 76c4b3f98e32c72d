# itinerary_planner/llm.py
import os
import json
import logging
from typing import Any, Dict, List, Protocol

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from itinerary_planner.errors import GenerationError
from itinerary_planner.schemas import GeneratedResult, TripMetadata, TripRequest

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

DEFAULT_MODEL = "gpt-4o-mini"

STAGE_SYSTEM_PROMPT = """You are a travel-planning agent that proposes places to visit.
Return ONLY valid JSON with a single key "s": an array of stages.
Each stage is an object:
  {"i": 1-based index, "l": place name, "d": one-sentence description,
   "e": one emoji, "lat": latitude, "lng": longitude, "rating": 1-5}
Never include a place listed under "avoid".
Return exactly the number of stages requested, ordered as they should be visited.
"""

STAGE_USER_TEMPLATE = """Trip request:
destination: {destination}
number_of_days: {number_of_days}
stages_per_day: {stages_per_day}
total_stages: {total_stages}
notes: {notes}

avoid: {avoid}
"""

METADATA_SYSTEM_PROMPT = """You are an AI that extracts a travel plan from a user's request.
Make appropriate assumptions: if the number of days is missing pick 3 or fewer;
if stages per day is missing pick fewer than 3; estimate a budget if none is given.
Respond with ONLY JSON in this structure:
  {"tripName": short fun name, "tripLocation": place, "stagesPerDay": number,
   "budget": number, "numberOfDays": number,
   "tripNotes": restrictions, preferences or other notes}
If the request is too confusing to plan, respond with {"error": reason}.
"""

METADATA_USER_TEMPLATE = """Do not follow the following instruction too strictly, but use it and try to satisfy it: {prompt}"""


class StageGenerator(Protocol):
    def generate(self, request: TripRequest, avoid_locations: List[str]) -> GeneratedResult:
        ...


def _build_client(client: Any | None, api_key: str | None) -> Any:
    if client is not None:
        return client
    key = api_key or os.getenv("OPENAI_API_KEY")
    if not key:
        raise GenerationError("OPENAI_API_KEY not set; cannot reach the generator")
    return OpenAI(api_key=key)


def _complete_json(client: Any, model: str, system: str, user: str) -> Dict[str, Any]:
    """Run one chat completion and decode its JSON body."""
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=0.7,
            response_format={"type": "json_object"},
        )
    except OpenAIError as exc:
        raise GenerationError(f"LLM request failed: {exc}") from exc

    raw = resp.choices[0].message.content
    try:
        parsed = json.loads(raw or "")
    except json.JSONDecodeError as exc:
        logger.warning("LLM response was not valid JSON")
        raise GenerationError("Invalid JSON from model") from exc
    if not isinstance(parsed, dict):
        raise GenerationError("LLM response was not a JSON object")
    return parsed


def _numbered(raw_stages: Any) -> Any:
    """Give every stage its 1-based position when the model omitted or botched ``i``."""
    if not isinstance(raw_stages, list):
        return raw_stages
    numbered: List[Any] = []
    for position, stage in enumerate(raw_stages, 1):
        if isinstance(stage, dict):
            index = stage.get("i", stage.get("index"))
            if not isinstance(index, int) or isinstance(index, bool) or index < 1:
                stage = {**stage, "i": position}
                stage.pop("index", None)
        numbered.append(stage)
    return numbered


class OpenAIStageGenerator:
    """Generate fresh stages for the part of a trip the cache did not cover."""

    def __init__(self, client: Any | None = None, *, model: str = DEFAULT_MODEL, api_key: str | None = None):
        self._client = client
        self._api_key = api_key
        self.model = model

    def generate(self, request: TripRequest, avoid_locations: List[str]) -> GeneratedResult:
        client = self._client = _build_client(self._client, self._api_key)
        total = request.number_of_days * request.stages_per_day
        user_prompt = STAGE_USER_TEMPLATE.format(
            destination=request.destination,
            number_of_days=request.number_of_days,
            stages_per_day=request.stages_per_day,
            total_stages=total,
            notes=request.notes or "none",
            avoid=", ".join(avoid_locations) if avoid_locations else "none",
        )

        logger.info(
            "Invoking LLM model %s for %d stage(s), avoiding %d location(s)",
            self.model,
            total,
            len(avoid_locations),
        )
        payload = _complete_json(client, self.model, STAGE_SYSTEM_PROMPT, user_prompt)
        try:
            result = GeneratedResult.model_validate({"stages": _numbered(payload.get("s", []))})
        except ValidationError as exc:
            raise GenerationError(f"Malformed stages from model: {exc.error_count()} error(s)") from exc

        avoid = {location.lower() for location in avoid_locations}
        kept = [stage for stage in result.stages if stage.location.lower() not in avoid]
        if len(kept) != len(result.stages):
            logger.warning("Dropped %d generated stage(s) that repeated cached places", len(result.stages) - len(kept))
        return GeneratedResult(stages=kept)


def extract_trip_metadata(prompt: str, client: Any | None = None, *, model: str = DEFAULT_MODEL) -> TripMetadata:
    """Turn a free-form travel prompt into structured trip constraints."""
    client = _build_client(client, None)
    logger.info("Invoking LLM model %s for trip metadata", model)
    payload = _complete_json(
        client, model, METADATA_SYSTEM_PROMPT, METADATA_USER_TEMPLATE.format(prompt=prompt)
    )
    if payload.get("error"):
        raise GenerationError(str(payload["error"]))
    try:
        return TripMetadata.model_validate(payload)
    except ValidationError as exc:
        raise GenerationError("Unable to generate a travel metadata. Please try again later.") from exc
