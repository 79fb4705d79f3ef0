from datetime import datetime, timedelta, timezone

import pytest

from studypet.application.pet import (
    apply_boss_result,
    apply_review_reward,
    apply_study_streak,
    feed,
)
from studypet.domain.models import PetStage, Profile

NOW = datetime(2025, 3, 10, 18, 30, tzinfo=timezone.utc)


# ---------- Review rewards ----------


@pytest.mark.parametrize("grade, xp", [(3, 10), (4, 20), (5, 5), (2, 0)])
def test_xp_by_grade(grade, xp):
    profile = Profile(id="u")
    update = apply_review_reward(profile, grade)
    assert update.xp == xp
    assert profile.xp == xp
    assert profile.health == 100


def test_total_failure_costs_health():
    profile = Profile(id="u", health=5)
    update = apply_review_reward(profile, 1)
    assert update.health == 0
    assert profile.xp == 0


def test_evolution_restores_health():
    profile = Profile(id="u", xp=95, health=40)
    update = apply_review_reward(profile, 3)
    assert update.evolved is True
    assert update.stage == PetStage.BABY
    assert profile.health == 100


def test_evolves_one_stage_per_review():
    profile = Profile(id="u", xp=1480)
    update = apply_review_reward(profile, 4)
    assert update.stage == PetStage.BABY

    update = apply_review_reward(profile, 4)
    assert update.stage == PetStage.CHILD

    update = apply_review_reward(profile, 4)
    assert update.stage == PetStage.ADULT


def test_adult_does_not_evolve_further():
    profile = Profile(id="u", xp=5000, stage=PetStage.ADULT)
    assert apply_review_reward(profile, 4).evolved is False


# ---------- Streak ----------


def test_first_study_starts_streak():
    profile = Profile(id="u")
    update = apply_study_streak(profile, NOW)
    assert update.current_streak == 1
    assert update.coins == 10
    assert profile.last_study_date == NOW


def test_studying_next_day_extends_streak():
    profile = Profile(id="u", current_streak=4, last_study_date=NOW - timedelta(days=1))
    assert apply_study_streak(profile, NOW).current_streak == 5


def test_same_day_keeps_streak():
    profile = Profile(id="u", current_streak=4, last_study_date=NOW - timedelta(hours=3))
    update = apply_study_streak(profile, NOW)
    assert update.current_streak == 4
    assert update.coins == 10


def test_missed_day_resets_streak():
    profile = Profile(id="u", current_streak=9, last_study_date=NOW - timedelta(days=2))
    assert apply_study_streak(profile, NOW).current_streak == 1


# ---------- Feeding ----------


def test_feed_without_coins_changes_nothing():
    profile = Profile(id="u", coins=40, health=50)
    result = feed(profile)
    assert result.fed is False
    assert result.message == "Not enough coins!"
    assert (profile.coins, profile.health, profile.xp) == (40, 50, 0)


def test_feed_spends_coins():
    profile = Profile(id="u", coins=60, health=90)
    result = feed(profile)
    assert result.fed is True
    assert profile.coins == 10
    assert profile.health == 100
    assert profile.xp == 5


# ---------- Boss ----------


def test_boss_win_pays_loot():
    profile = Profile(id="u", health=30)
    message = apply_boss_result(profile, passed=True)
    assert (profile.xp, profile.coins, profile.health) == (100, 50, 100)
    assert "100 XP" in message


def test_boss_loss_costs_health():
    profile = Profile(id="u", health=15)
    apply_boss_result(profile, passed=False)
    assert profile.health == 0
    assert profile.xp == 0
