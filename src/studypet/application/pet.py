"""
Pet and reward bookkeeping.

Every function here modifies the given Profile in place and returns a
summary of what changed; persisting the profile is the caller's job.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from studypet.domain.constants import (
    BOSS_LOSS_HEALTH,
    BOSS_WIN_COINS,
    BOSS_WIN_XP,
    COINS_PER_REVIEW,
    EASY_XP,
    FAIL_HEALTH_PENALTY,
    FEED_COST,
    FEED_HEALTH,
    FEED_XP,
    GRADE_XP,
    MAX_HEALTH,
    STAGE_THRESHOLDS,
)
from studypet.domain.models import PetStage, PetUpdate, Profile, StreakUpdate

logger = logging.getLogger(__name__)

# Stage -> (next stage, XP needed to reach it)
_NEXT_STAGE = {
    PetStage.EGG: (PetStage.BABY, STAGE_THRESHOLDS["baby"]),
    PetStage.BABY: (PetStage.CHILD, STAGE_THRESHOLDS["child"]),
    PetStage.CHILD: (PetStage.ADULT, STAGE_THRESHOLDS["adult"]),
}


@dataclass(frozen=True)
class FeedResult:
    fed: bool
    message: str
    coins: int
    health: int
    xp: int


def apply_review_reward(profile: Profile, grade: int) -> PetUpdate:
    """
    Apply XP/health for a graded review, then evolve at most one stage.

    "Good" (4) pays the most XP; "Easy" (5) pays little so that spamming easy
    grades is not rewarded. A total failure (<= 1) costs health. Grade 2
    changes nothing.
    """
    if grade in GRADE_XP:
        profile.xp += GRADE_XP[grade]
    elif grade >= 5:
        profile.xp += EASY_XP
    elif grade <= 1:
        profile.health = max(0, profile.health - FAIL_HEALTH_PENALTY)

    evolved = _evolve(profile)
    return PetUpdate(xp=profile.xp, health=profile.health, stage=profile.stage, evolved=evolved)


def _evolve(profile: Profile) -> bool:
    stage = PetStage(profile.stage)
    if stage not in _NEXT_STAGE:
        return False

    next_stage, threshold = _NEXT_STAGE[stage]
    if profile.xp < threshold:
        return False

    profile.stage = next_stage
    profile.health = MAX_HEALTH
    logger.info(f"Pet for {profile.id} evolved: {stage.value} -> {next_stage.value}")
    return True


def apply_study_streak(profile: Profile, now: datetime) -> StreakUpdate:
    """
    Pay the per-review coin reward and maintain the daily streak.

    Studying again on the same day keeps the streak; studying on the day after
    the last study day extends it; anything else restarts it at 1.
    """
    today = now.date()
    last_day = profile.last_study_date.date() if profile.last_study_date else None

    if last_day != today:
        if last_day == today - timedelta(days=1):
            profile.current_streak += 1
        else:
            profile.current_streak = 1

    profile.coins += COINS_PER_REVIEW
    profile.last_study_date = now
    return StreakUpdate(coins=profile.coins, current_streak=profile.current_streak)


def feed(profile: Profile) -> FeedResult:
    if profile.coins < FEED_COST:
        return FeedResult(
            fed=False,
            message="Not enough coins!",
            coins=profile.coins,
            health=profile.health,
            xp=profile.xp,
        )

    profile.coins -= FEED_COST
    profile.health = min(MAX_HEALTH, profile.health + FEED_HEALTH)
    profile.xp += FEED_XP
    return FeedResult(
        fed=True, message="Yum!", coins=profile.coins, health=profile.health, xp=profile.xp
    )


def apply_boss_result(profile: Profile, passed: bool) -> str:
    """Boss win: big XP/coin loot and full health. Loss: a health penalty."""
    if passed:
        profile.xp += BOSS_WIN_XP
        profile.coins += BOSS_WIN_COINS
        profile.health = MAX_HEALTH
        return f"{BOSS_WIN_XP} XP, {BOSS_WIN_COINS} Coins, Full Health!"

    profile.health = max(0, profile.health - BOSS_LOSS_HEALTH)
    return f"-{BOSS_LOSS_HEALTH} Health. The Boss defeated you."
