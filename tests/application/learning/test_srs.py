from datetime import datetime, timedelta, timezone

import pytest

from studypet.application.learning.srs import calculate_review, round_half_up

NOW = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


# ---------- Success path ----------


def test_new_card_good_grade_keeps_ease():
    result = calculate_review(0, 2.5, 4, now=NOW)
    assert result.interval == 1
    assert result.ease_factor == 2.5


def test_second_success_jumps_to_six_days_regardless_of_ease():
    assert calculate_review(1, 2.6, 5, now=NOW).interval == 6
    assert calculate_review(1, 1.3, 3, now=NOW).interval == 6


def test_mature_interval_multiplies_by_ease():
    # round(6 * 2.6) = round(15.6)
    assert calculate_review(6, 2.6, 5, now=NOW).interval == 16


def test_perfect_grade_raises_ease():
    assert calculate_review(6, 2.5, 5, now=NOW).ease_factor == 2.6


def test_grade_three_penalty_clamps_to_floor():
    assert calculate_review(10, 1.35, 3, now=NOW).ease_factor == 1.3


def test_grade_three_lowers_ease():
    assert calculate_review(6, 2.5, 3, now=NOW).ease_factor == 2.36


def test_next_review_is_interval_days_after_now():
    result = calculate_review(6, 2.6, 5, now=NOW)
    assert result.next_review == NOW + timedelta(days=16)


def test_default_now_is_utc():
    result = calculate_review(0, 2.5, 5)
    assert result.next_review.tzinfo is not None


# ---------- Failure path ----------


@pytest.mark.parametrize("interval", [0, 1, 6, 120])
@pytest.mark.parametrize("ease", [1.3, 2.5, 2.77])
@pytest.mark.parametrize("grade", [0, 1, 2])
def test_failure_resets_interval_and_keeps_ease(interval, ease, grade):
    result = calculate_review(interval, ease, grade, now=NOW)
    assert result.interval == 1
    assert result.ease_factor == ease
    assert result.next_review == NOW + timedelta(days=1)


# ---------- Properties ----------


def test_interval_grows_with_ease():
    intervals = [calculate_review(10, ease, 5, now=NOW).interval for ease in (1.3, 1.5, 2.0, 2.5)]
    assert intervals == sorted(intervals)
    assert len(set(intervals)) == len(intervals)


@pytest.mark.parametrize("grade", [0, 1, 2, 3, 4, 5])
@pytest.mark.parametrize("ease", [1.3, 1.31, 1.4, 2.5])
def test_ease_never_below_floor(grade, ease):
    assert calculate_review(8, ease, grade, now=NOW).ease_factor >= 1.3


def test_round_half_up_matches_schoolbook_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
