"""
Target-difficulty mapper.

Maps a proficiency score to the numeric level and label used to parameterize
content generation. The label and the number come from the same proficiency
but with different breakpoints, so they may disagree near a boundary.
"""

from studypet.application.learning.srs import round_half_up
from studypet.domain.constants import (
    FALLBACK_LEVEL,
    LABEL_LEVELS,
    LABEL_THRESHOLDS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    STRETCH_FACTOR,
    TOP_LABEL,
)
from studypet.domain.models import DifficultyLabel, TargetDifficulty


def difficulty_label(proficiency: float) -> DifficultyLabel:
    for upper, label in LABEL_THRESHOLDS:
        if proficiency < upper:
            return DifficultyLabel(label)
    return DifficultyLabel(TOP_LABEL)


def calculate_target_difficulty(proficiency: float) -> TargetDifficulty:
    """Aim 15% above the proficiency-implied level to keep content challenging."""
    stretched = (proficiency / 10) * (1 + STRETCH_FACTOR)
    target = min(MAX_DIFFICULTY, max(MIN_DIFFICULTY, stretched))

    return TargetDifficulty(
        difficulty=round_half_up(target),
        difficulty_label=difficulty_label(proficiency),
    )


def label_to_level(label: str | DifficultyLabel) -> int:
    """Numeric level for callers that only know a label."""
    value = label.value if isinstance(label, DifficultyLabel) else label
    return LABEL_LEVELS.get(value, FALLBACK_LEVEL)


def difficulty_guidance(level: int) -> str:
    """Prompt guidance text for a numeric difficulty level."""
    if level <= 2:
        return (
            f"Difficulty: Absolute Beginner (Level {level}/10)\n"
            "- Define all terms\n"
            "- Use simple examples\n"
            "- Focus on foundational concepts\n"
            "- Multiple choice options should be clearly distinct"
        )
    if level <= 4:
        return (
            f"Difficulty: Beginner (Level {level}/10)\n"
            "- Assume basic familiarity with the subject\n"
            "- Include some terminology without extensive definitions\n"
            "- Focus on core concepts"
        )
    if level <= 6:
        return (
            f"Difficulty: Intermediate (Level {level}/10)\n"
            "- Assume working knowledge of fundamentals\n"
            "- Include application-based questions\n"
            "- Some nuanced distinctions required"
        )
    if level <= 8:
        return (
            f"Difficulty: Advanced (Level {level}/10)\n"
            "- Assume strong foundation\n"
            "- Include edge cases and exceptions\n"
            "- Require synthesis of multiple concepts"
        )
    return (
        f"Difficulty: Expert (Level {level}/10)\n"
        "- Assume mastery of core content\n"
        "- Include subtle distinctions\n"
        "- Test deep understanding and rare scenarios"
    )
