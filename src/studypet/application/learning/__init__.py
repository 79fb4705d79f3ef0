# Adaptive Learning Core
from .difficulty import calculate_target_difficulty, difficulty_guidance, label_to_level
from .performance import calculate_performance
from .proficiency import (
    calculate_proficiency_update,
    seed_proficiency,
    update_average_response_time,
)
from .srs import calculate_review

__all__ = [
    "calculate_performance",
    "calculate_proficiency_update",
    "calculate_review",
    "calculate_target_difficulty",
    "difficulty_guidance",
    "label_to_level",
    "seed_proficiency",
    "update_average_response_time",
]
