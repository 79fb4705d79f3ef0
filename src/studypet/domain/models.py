"""
Domain models for the adaptive learning core.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_CONFIDENCE,
    DEFAULT_PROFICIENCY,
    INITIAL_EASE,
    MAX_HEALTH,
)


class DifficultyLabel(str, Enum):
    BEGINNER = "Beginner"
    ELEMENTARY = "Elementary"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class PlacementLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class PetStage(str, Enum):
    EGG = "egg"
    BABY = "baby"
    CHILD = "child"
    ADULT = "adult"


@dataclass(frozen=True)
class ReviewSignals:
    """
    Raw signals captured for one review event.

    Attributes:
        grade: Self-reported recall quality (1=total failure, 5=perfect).
        response_time_ms: Time before the learner graded the card.
        was_flipped: True if the answer was revealed before grading.
        card_difficulty: Intrinsic difficulty of the card (1-10).
    """

    grade: int
    response_time_ms: int
    was_flipped: bool
    card_difficulty: float


@dataclass(frozen=True)
class PerformanceResult:
    """Final performance score plus every intermediate, for auditing."""

    raw_score: float
    grade_score: float
    time_score: float
    flip_score: float
    difficulty_adjusted: float


@dataclass(frozen=True)
class SRSResult:
    interval: int
    ease_factor: float
    next_review: datetime


@dataclass(frozen=True)
class ProficiencyUpdate:
    new_proficiency: float
    new_confidence: float
    change: float


@dataclass(frozen=True)
class TargetDifficulty:
    difficulty: int
    difficulty_label: DifficultyLabel


@dataclass
class ProficiencyState:
    """
    Topic mastery estimate for one (user, topic) pair.

    Created lazily on the first review of a topic.
    """

    user_id: str
    topic: str
    proficiency_score: float = DEFAULT_PROFICIENCY
    confidence: float = DEFAULT_CONFIDENCE
    total_reviews: int = 0
    avg_response_time_ms: int | None = None
    last_updated: datetime | None = None


@dataclass
class CardContent:
    question: str
    answer: str
    explanation: str | None = None
    type: str = "basic"
    options: list[str] | None = None


@dataclass
class Card:
    """
    A flashcard together with its SM-2 scheduling state.

    New cards start with interval 0 and the initial ease, and are due at
    creation time.
    """

    id: str
    deck_id: str
    content: CardContent
    next_review: datetime
    created_at: datetime
    interval: int = 0
    ease_factor: float = INITIAL_EASE
    difficulty: float | None = None
    topic: str | None = None

    @property
    def front(self) -> str:
        return self.content.question

    @property
    def back(self) -> str:
        return self.content.answer


@dataclass
class Deck:
    id: str
    user_id: str
    topic: str
    created_at: datetime


@dataclass
class Profile:
    """Pet and reward bookkeeping for one user."""

    id: str
    xp: int = 0
    health: int = MAX_HEALTH
    stage: PetStage = PetStage.EGG
    coins: int = 0
    current_streak: int = 0
    last_study_date: datetime | None = None
    pet_name: str | None = None
    pet_type: str | None = None
    learning_goals: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewRecord:
    """A review signal logged for later analysis."""

    user_id: str
    card_id: str
    signals: ReviewSignals
    proficiency_at_time: float
    recorded_at: datetime


@dataclass(frozen=True)
class PetUpdate:
    xp: int
    health: int
    stage: PetStage
    evolved: bool


@dataclass(frozen=True)
class StreakUpdate:
    coins: int
    current_streak: int


@dataclass
class ReviewOutcome:
    """Everything a single review changed."""

    card_update: SRSResult
    pet_update: PetUpdate
    streak_update: StreakUpdate
    topic: str
    performance: PerformanceResult | None = None
    proficiency_update: ProficiencyUpdate | None = None
    target: TargetDifficulty | None = None


@dataclass
class BossEncounter:
    available: bool
    message: str | None = None
    questions: list[dict[str, Any]] = field(default_factory=list)
