"""Error taxonomy for the itinerary pipeline.

Each failure is re-raised with a short prefix naming the step that failed,
e.g. ``Could not find closest destinations | connection refused``.
"""
from __future__ import annotations

from typing import Type, TypeVar


class TripPlannerError(Exception):
    """Base class for failures surfaced to the HTTP layer."""


class GeocodeError(TripPlannerError):
    """The destination name could not be resolved to coordinates."""


class StoreError(TripPlannerError):
    """The destination store rejected a query or a write."""


class GenerationError(TripPlannerError):
    """The external generator failed or returned malformed stages."""


E = TypeVar("E", bound=TripPlannerError)


def annotate(exc_type: Type[E], prefix: str, exc: BaseException) -> E:
    """Build ``exc_type("<prefix> | <exc>")``; callers ``raise annotate(...) from exc``."""
    return exc_type(f"{prefix} | {exc}")
