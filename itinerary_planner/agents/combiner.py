"""Merge cached and generated stages into the day grid."""
from __future__ import annotations

from typing import List, Literal, Sequence, Tuple

from itinerary_planner.schemas import CandidateStage, Itinerary, ItineraryDay, ItineraryStage


def combine_stages(
    cached: Sequence[CandidateStage],
    generated: Sequence[CandidateStage],
    number_of_days: int,
    stages_per_day: int,
) -> Itinerary:
    """Fill ``number_of_days`` days front-to-back, cached stages first.

    Days past the end of the pool stay empty; the result always has exactly
    ``number_of_days`` entries.
    """
    pool: List[Tuple[Literal["cache", "generated"], CandidateStage]] = [
        ("cache", stage) for stage in cached
    ] + [("generated", stage) for stage in generated]

    days: List[ItineraryDay] = []
    cursor = 0
    for day in range(1, number_of_days + 1):
        taken = pool[cursor:cursor + stages_per_day]
        cursor += len(taken)
        days.append(
            ItineraryDay(
                day=day,
                stages=[
                    ItineraryStage(
                        stage_index=position,
                        location_name=stage.location,
                        description=stage.description,
                        emoji=stage.emoji,
                        latitude=stage.latitude,
                        longitude=stage.longitude,
                        rating=stage.rating,
                        source=source,
                    )
                    for position, (source, stage) in enumerate(taken, 1)
                ],
            )
        )
    return Itinerary(days=days)
