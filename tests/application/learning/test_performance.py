import pytest

from studypet.application.learning.performance import (
    calculate_performance,
    difficulty_adjustment,
    flip_score,
    grade_score,
    time_score,
)
from studypet.domain.models import ReviewSignals


def signals(grade=4, time_ms=5000, flipped=False, difficulty=5):
    return ReviewSignals(
        grade=grade, response_time_ms=time_ms, was_flipped=flipped, card_difficulty=difficulty
    )


# ---------- Sub-scores ----------


@pytest.mark.parametrize(
    "grade, expected",
    [(5, 1.0), (4, 0.7), (3, 0.4), (2, 0.2), (1, 0.0), (0, 0.5), (7, 0.5)],
)
def test_grade_score_lookup(grade, expected):
    assert grade_score(grade) == expected


@pytest.mark.parametrize(
    "time_ms, expected",
    [(1500, 0.4), (2000, 1.0), (10000, 1.0), (12000, 0.6), (15000, 0.6), (25000, 0.3)],
)
def test_time_score_window_at_average_proficiency(time_ms, expected):
    assert time_score(time_ms, 50) == expected


def test_time_window_scales_with_proficiency():
    # 8s is past the 7s window at proficiency 20, inside the 13s window at 80
    assert time_score(8000, 20) == 0.6
    assert time_score(8000, 80) == 1.0
    # 2.5s is inside the window at 50 but a guess at 80 (min 2.6s)
    assert time_score(2500, 80) == 0.4


def test_flip_score_literals():
    assert flip_score(False) == 0.15
    assert flip_score(True) == 0.05


def test_difficulty_adjustment_is_clamped():
    assert difficulty_adjustment(0.95, 10) == 1.0
    assert difficulty_adjustment(0.0, 1) == 0.0


# ---------- Combined score ----------


def test_exposes_all_intermediates():
    result = calculate_performance(signals(grade=5), 50)
    assert result.grade_score == 1.0
    assert result.time_score == 1.0
    assert result.flip_score == 0.15
    assert 0.0 <= result.difficulty_adjusted <= 1.0


def test_grade_one_scores_zero_grade_component():
    assert calculate_performance(signals(grade=1), 50).grade_score == 0.0


def test_perfect_recall_on_hard_card_scores_high():
    result = calculate_performance(signals(grade=5, time_ms=5000, difficulty=7), 50)
    assert result.difficulty_adjusted == pytest.approx(0.88)
    assert result.raw_score == pytest.approx(0.816)
    assert result.raw_score > 0.8


def test_failure_after_reveal_on_easy_card_scores_low():
    result = calculate_performance(signals(grade=1, time_ms=25000, flipped=True, difficulty=3), 50)
    assert result.time_score == 0.3
    assert result.raw_score == pytest.approx(0.1225)
    assert result.raw_score < 0.3


def test_neutral_difficulty_leaves_sum_unchanged():
    result = calculate_performance(signals(grade=4, difficulty=5), 50)
    # 0.7 * 0.4 + 1.0 * 0.25 + 0.15
    assert result.difficulty_adjusted == pytest.approx(0.68)
    assert result.raw_score == pytest.approx(0.68)


@pytest.mark.parametrize("grade", [1, 3, 5])
def test_difficulty_adjusted_increases_with_card_difficulty(grade):
    scores = [
        calculate_performance(signals(grade=grade, difficulty=d), 50).difficulty_adjusted
        for d in (2, 5, 8)
    ]
    assert scores[0] < scores[1] < scores[2]


@pytest.mark.parametrize("grade", [1, 2, 3, 4, 5])
@pytest.mark.parametrize("time_ms", [100, 5000, 30000])
@pytest.mark.parametrize("difficulty", [1, 5, 10])
def test_score_is_normalized(grade, time_ms, difficulty):
    result = calculate_performance(signals(grade=grade, time_ms=time_ms, difficulty=difficulty), 50)
    assert 0.0 <= result.raw_score <= 1.0
