"""
Proficiency estimator.

An error-driven update: the proficiency score is read as an expected
performance, and moves toward the observed score at a rate that shrinks as
confidence accumulates.
"""

from studypet.application.learning.srs import round_half_up
from studypet.domain.constants import (
    BASE_LEARNING_RATE,
    CONFIDENCE_DAMPING,
    CONFIDENCE_GROWTH,
    MAX_CONFIDENCE,
    MAX_PLACEMENT_CONFIDENCE,
    PLACEMENT_PROFICIENCY,
    RESPONSE_TIME_EMA_WEIGHT,
)
from studypet.domain.models import PerformanceResult, PlacementLevel, ProficiencyUpdate


def calculate_proficiency_update(
    current_proficiency: float,
    current_confidence: float,
    performance: PerformanceResult,
) -> ProficiencyUpdate:
    learning_rate = BASE_LEARNING_RATE * (1 - current_confidence * CONFIDENCE_DAMPING)
    expected = current_proficiency / 100
    change = learning_rate * (performance.raw_score - expected) * 100

    new_proficiency = max(0.0, min(100.0, current_proficiency + change))

    # Confidence tracks how much evidence we have, not whether it was good
    new_confidence = min(
        MAX_CONFIDENCE, current_confidence + (1 - current_confidence) * CONFIDENCE_GROWTH
    )

    return ProficiencyUpdate(
        new_proficiency=new_proficiency,
        new_confidence=new_confidence,
        change=change,
    )


def update_average_response_time(current_avg_ms: int | None, response_time_ms: int) -> int:
    """Exponential moving average of response times, seeded by the first observation."""
    if current_avg_ms is None:
        return response_time_ms
    weight = RESPONSE_TIME_EMA_WEIGHT
    return round_half_up(current_avg_ms * weight + response_time_ms * (1 - weight))


def seed_proficiency(level: PlacementLevel, placement_confidence: float) -> tuple[float, float]:
    """
    Initial (proficiency, confidence) from a placement assessment.

    Args:
        level: Recommended level from the placement quiz.
        placement_confidence: Quiz confidence on a 0-100 scale.
    """
    proficiency = PLACEMENT_PROFICIENCY[PlacementLevel(level).value]
    confidence = min(MAX_PLACEMENT_CONFIDENCE, placement_confidence / 100)
    return proficiency, confidence
