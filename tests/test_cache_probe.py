import asyncio

import pytest

from conftest import FakeGeocoder, make_record
from itinerary_planner.agents.cache_probe import (
    CacheProbe,
    adjusted_stages_per_day,
    max_stages_to_fetch,
    record_to_stage,
)
from itinerary_planner.errors import GeocodeError, StoreError
from itinerary_planner.schemas import Coordinates, TripRequest
from itinerary_planner.store.memory import InMemoryDestinationStore


class RecordingStore(InMemoryDestinationStore):
    def __init__(self, records=None):
        super().__init__(records)
        self.queries = []

    def find_nearest(self, latitude, longitude, radius_meters, limit):
        self.queries.append((latitude, longitude, radius_meters, limit))
        return super().find_nearest(latitude, longitude, radius_meters, limit)


class BrokenStore(InMemoryDestinationStore):
    def find_nearest(self, latitude, longitude, radius_meters, limit):
        raise StoreError("connection refused")


def _request(days: int, per_day: int) -> TripRequest:
    return TripRequest(destination="Vancouver", number_of_days=days, stages_per_day=per_day, notes="")


@pytest.mark.parametrize(
    "days,per_day,expected",
    [(1, 0, 0), (1, 1, 0), (2, 2, 3), (3, 2, 4), (5, 3, 12), (1, 5, 4)],
)
def test_max_stages_to_fetch_caps_at_eighty_percent(days, per_day, expected):
    assert max_stages_to_fetch(days, per_day) == expected


def test_adjusted_stages_per_day_subtracts_cached_share():
    assert adjusted_stages_per_day(2, 2, 2) == 1
    assert adjusted_stages_per_day(3, 1, 2) == 3
    assert adjusted_stages_per_day(2, 9, 2) == 0


def test_record_label_prefers_first_alias():
    aliased = make_record("Vancouver", 49.3, -123.1, aliases=["Stanley Park", "The Seawall"])
    bare = make_record("Granville Island", 49.27, -123.13)

    assert record_to_stage(aliased, 1).location == "Stanley Park"
    assert record_to_stage(bare, 2).location == "Granville Island"
    assert record_to_stage(bare, 2).index == 2


def test_zero_capacity_skips_store_query():
    store = RecordingStore([make_record("Vancouver", 49.28, -123.12)])
    probe = CacheProbe(store, FakeGeocoder())

    result = asyncio.run(probe.probe(_request(1, 1)))

    assert result is None
    assert store.queries == []


def test_probe_queries_thirty_mile_radius_with_cap():
    store = RecordingStore([make_record(f"Spot {i}", 49.28 + i / 1000, -123.12, aliases=[f"Alias {i}"]) for i in range(6)])
    probe = CacheProbe(store, FakeGeocoder(Coordinates(latitude=49.28, longitude=-123.12)))

    result = asyncio.run(probe.probe(_request(2, 2)))

    assert len(store.queries) == 1
    _, _, radius, limit = store.queries[0]
    assert radius == pytest.approx(30 * 1609.34)
    assert limit == 3
    assert [s.location for s in result.stages] == ["Alias 0", "Alias 1", "Alias 2"]
    assert [s.index for s in result.stages] == [1, 2, 3]


def test_probe_ignores_destinations_outside_radius():
    far = make_record("Seattle", 47.6062, -122.3321)
    probe = CacheProbe(RecordingStore([far]), FakeGeocoder())

    result = asyncio.run(probe.probe(_request(3, 3)))

    assert result is not None
    assert result.stages == []


def test_geocode_failure_stops_before_store():
    store = RecordingStore()
    probe = CacheProbe(store, FakeGeocoder(fail=True))

    with pytest.raises(GeocodeError):
        asyncio.run(probe.probe(_request(2, 2)))
    assert store.queries == []


def test_store_failure_is_annotated():
    probe = CacheProbe(BrokenStore(), FakeGeocoder())

    with pytest.raises(StoreError, match=r"^Could not find closest destinations \| connection refused"):
        asyncio.run(probe.probe(_request(2, 2)))
