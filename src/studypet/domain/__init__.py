# Domain Package
from .errors import ContentGenerationError, StudyPetError, UpstreamDataUnavailable
from .models import (
    Card,
    CardContent,
    Deck,
    DifficultyLabel,
    PerformanceResult,
    PetStage,
    PlacementLevel,
    ProficiencyState,
    ProficiencyUpdate,
    Profile,
    ReviewSignals,
    SRSResult,
    TargetDifficulty,
)

__all__ = [
    "Card",
    "CardContent",
    "ContentGenerationError",
    "Deck",
    "DifficultyLabel",
    "PerformanceResult",
    "PetStage",
    "PlacementLevel",
    "ProficiencyState",
    "ProficiencyUpdate",
    "Profile",
    "ReviewSignals",
    "SRSResult",
    "StudyPetError",
    "TargetDifficulty",
    "UpstreamDataUnavailable",
]
