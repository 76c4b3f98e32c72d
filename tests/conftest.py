from typing import List

import pytest

from itinerary_planner.agents.tag_extractor import TagExtractor
from itinerary_planner.errors import GeocodeError
from itinerary_planner.schemas import CandidateStage, Coordinates, DestinationRecord, GeneratedResult, TripRequest
from itinerary_planner.store.memory import InMemoryDestinationStore

VANCOUVER = Coordinates(latitude=49.2827, longitude=-123.1207)


class FakeGeocoder:
    def __init__(self, coords: Coordinates = VANCOUVER, fail: bool = False):
        self.coords = coords
        self.fail = fail
        self.calls: List[str] = []

    async def resolve(self, place: str) -> Coordinates:
        self.calls.append(place)
        if self.fail:
            raise GeocodeError(f"Could not geocode destination | {place!r} returned ZERO_RESULTS")
        return self.coords


class FakeGenerator:
    """Returns ``stages_per_day * number_of_days`` numbered stages."""

    def __init__(self, prefix: str = "Generated", fail: Exception | None = None):
        self.prefix = prefix
        self.fail = fail
        self.calls: List[tuple] = []

    def generate(self, request: TripRequest, avoid_locations: List[str]) -> GeneratedResult:
        self.calls.append((request, list(avoid_locations)))
        if self.fail is not None:
            raise self.fail
        total = request.number_of_days * request.stages_per_day
        return GeneratedResult(
            stages=[
                CandidateStage(
                    index=i,
                    location=f"{self.prefix} {i}",
                    description=f"Stop {i}",
                    emoji="*",
                    latitude=49.0 + i / 100,
                    longitude=-123.0 - i / 100,
                    rating=4.0,
                )
                for i in range(1, total + 1)
            ]
        )


def split_words(text: str) -> List[str]:
    return [word.strip(".,!?") for word in text.split()]


def make_record(name: str, lat: float, lon: float, aliases=None, **kwargs) -> DestinationRecord:
    return DestinationRecord(
        coordinates=Coordinates(latitude=lat, longitude=lon),
        canonical_name=name,
        aliases=list(aliases or []),
        description=kwargs.pop("description", f"About {name}"),
        emoji=kwargs.pop("emoji", "🏞"),
        **kwargs,
    )


@pytest.fixture
def tag_extractor() -> TagExtractor:
    # Whitespace tokens stand in for the spaCy pipeline.
    return TagExtractor(noun_extractor=split_words)


@pytest.fixture
def store() -> InMemoryDestinationStore:
    return InMemoryDestinationStore()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()
