"""
Performance scorer: turns raw review signals into a score in [0, 1].

Pure and side-effect free.
"""

from studypet.domain.constants import (
    DIFFICULTY_OFFSET_PER_LEVEL,
    DIFFICULTY_WEIGHT,
    FLIP_SCORE_RECALLED,
    FLIP_SCORE_REVEALED,
    GRADE_SCORES,
    GRADE_WEIGHT,
    NEUTRAL_CARD_DIFFICULTY,
    OPTIMAL_MAX_MS,
    OPTIMAL_MIN_MS,
    SLOW_MULTIPLIER,
    TIME_SCORE_OPTIMAL,
    TIME_SCORE_SLOW,
    TIME_SCORE_STRUGGLED,
    TIME_SCORE_TOO_FAST,
    TIME_WEIGHT,
    UNKNOWN_GRADE_SCORE,
)
from studypet.domain.models import PerformanceResult, ReviewSignals


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def grade_score(grade: int) -> float:
    return GRADE_SCORES.get(grade, UNKNOWN_GRADE_SCORE)


def time_score(response_time_ms: float, proficiency: float) -> float:
    """
    Score the response time against a window that scales with proficiency.

    At proficiency 50 the optimal window is 2-10 seconds. The window is
    multiplied by 1 + (proficiency - 50) / 100, i.e. 0.5x at 0 and 1.5x at 100.
    """
    proficiency_factor = 1 + (proficiency - 50) / 100
    optimal_min = OPTIMAL_MIN_MS * proficiency_factor
    optimal_max = OPTIMAL_MAX_MS * proficiency_factor

    if response_time_ms < optimal_min:
        # Too fast, probably a guess
        return TIME_SCORE_TOO_FAST
    if response_time_ms <= optimal_max:
        return TIME_SCORE_OPTIMAL
    if response_time_ms <= optimal_max * SLOW_MULTIPLIER:
        return TIME_SCORE_SLOW
    return TIME_SCORE_STRUGGLED


def flip_score(was_flipped: bool) -> float:
    """
    Flip component, stated on the weighted scale.

    Pure recall earns the full flip weight (0.15); revealing the answer first
    earns a third of it.
    """
    return FLIP_SCORE_REVEALED if was_flipped else FLIP_SCORE_RECALLED


def difficulty_adjustment(weighted_sum: float, card_difficulty: float) -> float:
    """Scale the weighted sum by card difficulty, centred on difficulty 5."""
    offset = (card_difficulty - NEUTRAL_CARD_DIFFICULTY) * DIFFICULTY_OFFSET_PER_LEVEL
    return _clamp(weighted_sum * (1 + offset), 0.0, 1.0)


def calculate_performance(signals: ReviewSignals, current_proficiency: float) -> PerformanceResult:
    """
    Calculate the weighted performance score for one review.

    The grade, time and flip components make up 0.80 of the score. The
    difficulty-adjusted sum is then blended in at the remaining 0.20.
    """
    g = grade_score(signals.grade)
    t = time_score(signals.response_time_ms, current_proficiency)
    f = flip_score(signals.was_flipped)

    weighted_sum = g * GRADE_WEIGHT + t * TIME_WEIGHT + f
    adjusted = difficulty_adjustment(weighted_sum, signals.card_difficulty)

    final = weighted_sum * (1 - DIFFICULTY_WEIGHT) + adjusted * DIFFICULTY_WEIGHT

    return PerformanceResult(
        raw_score=final,
        grade_score=g,
        time_score=t,
        flip_score=f,
        difficulty_adjusted=adjusted,
    )
