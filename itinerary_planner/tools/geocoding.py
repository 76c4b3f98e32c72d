from dataclasses import dataclass
from typing import Optional
import os

import httpx

from itinerary_planner.errors import GeocodeError
from itinerary_planner.schemas import Coordinates

import logging

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

@dataclass
class GeocodePolicy:
    language: str = "en"
    region: Optional[str] = None
    timeout: float = 10.0

class Geocoder:
    """
    Resolve free-text place names with the Google Geocoding REST API.
    Swap `resolve()` for another provider by implementing the same coroutine.
    """
    GEOCODE_ENDPOINT = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, policy: GeocodePolicy | None = None, *, api_key: Optional[str] = None):
        self.policy = policy or GeocodePolicy()
        self.api_key = api_key or os.getenv("GOOGLE_MAPS_API_KEY")

    async def resolve(self, place: str) -> Coordinates:
        """Return the first match for ``place``.

        Raises ``GeocodeError`` when the key is missing, the request fails or
        the provider finds nothing; callers treat all three as fatal.
        """
        if not place or not place.strip():
            raise GeocodeError("Could not geocode destination | empty place name")
        if not self.api_key:
            raise GeocodeError("Could not geocode destination | GOOGLE_MAPS_API_KEY not configured")

        params = {"address": place.strip(), "key": self.api_key, "language": self.policy.language}
        if self.policy.region:
            params["region"] = self.policy.region

        try:
            async with httpx.AsyncClient(timeout=self.policy.timeout) as client:
                response = await client.get(self.GEOCODE_ENDPOINT, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise GeocodeError(f"Could not geocode destination | {exc}") from exc
        except ValueError as exc:
            raise GeocodeError(f"Could not geocode destination | response was not JSON: {exc}") from exc

        return self._first_location(place, data)

    @staticmethod
    def _first_location(place: str, data: dict) -> Coordinates:
        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.warning("Geocoder returned %s for '%s'", status or "no status", place)
            raise GeocodeError(f"Could not geocode destination | {place!r} returned {status or 'no results'}")
        loc = (results[0].get("geometry") or {}).get("location") or {}
        if "lat" not in loc or "lng" not in loc:
            raise GeocodeError(f"Could not geocode destination | {place!r} result has no location")
        logger.debug("Geocoded %s to %s, %s", place, loc["lat"], loc["lng"])
        return Coordinates(latitude=float(loc["lat"]), longitude=float(loc["lng"]))
