"""Day-grid placement of cached and generated stages."""

from itinerary_planner.agents.combiner import combine_stages
from itinerary_planner.schemas import CandidateStage


def _stages(prefix: str, count: int):
    return [CandidateStage(index=i, location=f"{prefix}{i}", description="", emoji="") for i in range(1, count + 1)]


def _names(itinerary):
    return [[stage.location_name for stage in day.stages] for day in itinerary.days]


def test_cached_stages_fill_first_days():
    itinerary = combine_stages(_stages("c", 2), _stages("g", 2), number_of_days=2, stages_per_day=2)

    assert _names(itinerary) == [["c1", "c2"], ["g1", "g2"]]
    assert [day.day for day in itinerary.days] == [1, 2]
    assert [s.source for s in itinerary.days[0].stages] == ["cache", "cache"]
    assert [s.source for s in itinerary.days[1].stages] == ["generated", "generated"]


def test_within_day_indices_restart_at_one():
    itinerary = combine_stages(_stages("c", 1), _stages("g", 5), number_of_days=3, stages_per_day=2)

    assert _names(itinerary) == [["c1", "g1"], ["g2", "g3"], ["g4", "g5"]]
    for day in itinerary.days:
        assert [s.stage_index for s in day.stages] == list(range(1, len(day.stages) + 1))


def test_short_pool_leaves_trailing_days_empty():
    itinerary = combine_stages([], _stages("g", 3), number_of_days=3, stages_per_day=2)

    assert len(itinerary.days) == 3
    assert _names(itinerary) == [["g1", "g2"], ["g3"], []]
    assert itinerary.stage_count() == 3


def test_surplus_stages_are_dropped():
    itinerary = combine_stages(_stages("c", 3), _stages("g", 4), number_of_days=2, stages_per_day=2)

    assert itinerary.stage_count() == 4
    assert all(len(day.stages) <= 2 for day in itinerary.days)
    assert _names(itinerary) == [["c1", "c2"], ["c3", "g1"]]


def test_zero_capacity_still_returns_every_day():
    itinerary = combine_stages(_stages("c", 2), [], number_of_days=4, stages_per_day=0)

    assert len(itinerary.days) == 4
    assert itinerary.stage_count() == 0


def test_cache_priority_holds_across_grid_sizes():
    cached, generated = _stages("c", 4), _stages("g", 6)
    for days in range(1, 5):
        for per_day in range(0, 4):
            itinerary = combine_stages(cached, generated, days, per_day)
            placed = itinerary.iter_stages()
            sources = [stage.source for stage in placed]

            assert len(itinerary.days) == days
            assert len(placed) <= days * per_day
            assert sources == sorted(sources, key=lambda s: s != "cache")
