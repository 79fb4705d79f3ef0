"""
SuperMemo-2 scheduler.

This is a pure computation module with no I/O.
"""

import math
from datetime import datetime, timedelta, timezone

from studypet.domain.constants import (
    EASE_DECIMALS,
    FAILED_INTERVAL,
    FIRST_INTERVAL,
    MIN_EASE,
    PASS_GRADE,
    SECOND_INTERVAL,
)
from studypet.domain.models import SRSResult


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_review(
    current_interval: int,
    current_ease: float,
    grade: int,
    now: datetime | None = None,
) -> SRSResult:
    """
    Compute the next interval and ease factor for a reviewed card.

    Args:
        current_interval: Previous interval in days (0 for a new card).
        current_ease: Current ease factor, as returned by the previous call.
        grade: Recall quality 0-5. Anything below 3 counts as a lapse.
        now: Reference time for the due date (defaults to current UTC time).

    Returns:
        SRSResult with the ease rounded to 2 decimals.
    """
    if grade >= PASS_GRADE:
        if current_interval == 0:
            new_interval = FIRST_INTERVAL
        elif current_interval == 1:
            new_interval = SECOND_INTERVAL
        else:
            new_interval = round_half_up(current_interval * current_ease)

        miss = 5 - grade
        new_ease = current_ease + (0.1 - miss * (0.08 + miss * 0.02))
    else:
        # A lapse resets the interval but leaves the ease alone
        new_interval = FAILED_INTERVAL
        new_ease = current_ease

    new_ease = max(new_ease, MIN_EASE)

    if now is None:
        now = datetime.now(timezone.utc)

    return SRSResult(
        interval=new_interval,
        ease_factor=round(new_ease, EASE_DECIMALS),
        next_review=now + timedelta(days=new_interval),
    )
