import pytest

from studypet.application.learning.difficulty import (
    calculate_target_difficulty,
    difficulty_guidance,
    difficulty_label,
    label_to_level,
)
from studypet.domain.models import DifficultyLabel


def test_low_proficiency_targets_easy_content():
    target = calculate_target_difficulty(25)
    assert target.difficulty < 4
    assert target.difficulty_label == DifficultyLabel.BEGINNER


def test_average_proficiency_targets_middle():
    target = calculate_target_difficulty(50)
    assert 4 < target.difficulty < 7
    assert target.difficulty == 6
    assert target.difficulty_label == DifficultyLabel.INTERMEDIATE


def test_high_proficiency_targets_hard_content():
    target = calculate_target_difficulty(80)
    assert target.difficulty > 7
    assert target.difficulty_label == DifficultyLabel.ADVANCED


@pytest.mark.parametrize("proficiency, expected", [(0, 1), (3, 1), (100, 10), (95, 10)])
def test_difficulty_is_clamped(proficiency, expected):
    assert calculate_target_difficulty(proficiency).difficulty == expected


@pytest.mark.parametrize(
    "proficiency, label",
    [
        (0, "Beginner"),
        (29.9, "Beginner"),
        (30, "Elementary"),
        (49, "Elementary"),
        (50, "Intermediate"),
        (69.9, "Intermediate"),
        (70, "Advanced"),
        (84.9, "Advanced"),
        (85, "Expert"),
        (100, "Expert"),
    ],
)
def test_label_thresholds(proficiency, label):
    assert difficulty_label(proficiency).value == label


def test_label_and_level_can_disagree_near_boundary():
    # Stretched number says 8 while the label is still Intermediate
    target = calculate_target_difficulty(69)
    assert target.difficulty == 8
    assert target.difficulty_label == DifficultyLabel.INTERMEDIATE


@pytest.mark.parametrize(
    "label, level",
    [("Expert", 9), ("Advanced", 7), ("Intermediate", 5), ("Elementary", 3), ("Beginner", 2)],
)
def test_label_to_level(label, level):
    assert label_to_level(label) == level
    assert label_to_level(DifficultyLabel(label)) == level


def test_unknown_label_falls_back():
    assert label_to_level("Wizard") == 2


@pytest.mark.parametrize(
    "level, tier",
    [
        (1, "Absolute Beginner"),
        (3, "Beginner"),
        (6, "Intermediate"),
        (8, "Advanced"),
        (9, "Expert"),
    ],
)
def test_guidance_tiers(level, tier):
    text = difficulty_guidance(level)
    assert text.startswith(f"Difficulty: {tier} (Level {level}/10)")
