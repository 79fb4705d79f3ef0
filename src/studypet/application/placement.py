"""
Placement assessment for a topic the learner has not studied yet.

A short generated quiz is scored on correctness and speed, and the result
seeds the topic's proficiency record.
"""

import logging
import time
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ValidationError

from studypet.application.learning import seed_proficiency
from studypet.application.review_service import ReviewService
from studypet.application.utils.text import is_letter_option, parse_json_payload
from studypet.domain.constants import (
    FAST_PLACEMENT_MS,
    PLACEMENT_QUESTIONS,
    PLACEMENT_TEMPERATURE,
)
from studypet.domain.errors import ContentGenerationError
from studypet.domain.models import PlacementLevel, ProficiencyState
from studypet.domain.ports import ContentGenerator

logger = logging.getLogger(__name__)


class PlacementQuestion(BaseModel):
    question: str
    options: list[str]
    answer: str
    difficulty: Literal["easy", "medium", "hard"] = "medium"


@dataclass(frozen=True)
class PlacementResponse:
    question_index: int
    user_answer: str
    correct: bool
    time_ms: int


@dataclass(frozen=True)
class PlacementResult:
    recommended_difficulty: PlacementLevel
    confidence_score: float


def _placement_prompt(topic: str, avoid: list[str]) -> str:
    avoid_clause = f"\nDO NOT repeat these questions: {'; '.join(avoid[:5])}" if avoid else ""
    return f"""
You are creating a placement quiz for a learning app about "{topic}".
Generate exactly {PLACEMENT_QUESTIONS} unique multiple-choice questions to assess user knowledge level.
Include 1 easy, 1 medium, and 1 hard question.
{avoid_clause}

CRITICAL FORMATTING RULES:
1. Options must be the ACTUAL ANSWER CHOICES, not letters like "A", "B", etc.
2. The "answer" field must EXACTLY match one of the options
3. Return ONLY valid JSON, no markdown

Example format:
[{{"question": "What is the capital of France?", "options": ["London", "Paris", "Berlin", "Madrid"], "answer": "Paris", "difficulty": "easy"}}]
""".strip()


def _is_usable(question: PlacementQuestion) -> bool:
    return (
        len(question.options) >= 2
        and question.answer in question.options
        and not any(is_letter_option(opt) for opt in question.options)
    )


async def generate_placement_quiz(
    generator: ContentGenerator, topic: str, avoid: list[str] | None = None
) -> list[PlacementQuestion]:
    """
    Ask the generator for a placement quiz and keep only well-formed questions.

    A failed generation yields an empty quiz rather than an error, so the
    caller can fall back to the default starting proficiency.
    """
    try:
        completion = await generator.complete(
            _placement_prompt(topic, avoid or []),
            f"Generate placement quiz for: {topic}. Session: {int(time.time() * 1000)}",
            PLACEMENT_TEMPERATURE,
        )
        payload = parse_json_payload(completion)
    except ContentGenerationError as e:
        logger.error(f"Placement quiz generation failed: {e}")
        return []

    if not isinstance(payload, list):
        logger.error("Placement quiz payload is not a JSON array")
        return []

    questions = []
    for item in payload:
        try:
            q = PlacementQuestion.model_validate(item)
        except ValidationError:
            continue
        if _is_usable(q):
            questions.append(q)
    return questions


def evaluate_placement(responses: list[PlacementResponse]) -> PlacementResult:
    """
    Score placement responses: one point per correct answer, half a point
    more when it came in under ten seconds.
    """
    if not responses:
        return PlacementResult(PlacementLevel.BEGINNER, 30.0)

    score = 0.0
    for r in responses:
        if r.correct:
            score += 1
            if r.time_ms < FAST_PLACEMENT_MS:
                score += 0.5

    percentage = score / (len(responses) * 1.5) * 100

    if percentage >= 70:
        return PlacementResult(PlacementLevel.ADVANCED, min(90.0, percentage))
    if percentage >= 40:
        return PlacementResult(PlacementLevel.INTERMEDIATE, min(85.0, 50 + percentage / 2))
    return PlacementResult(PlacementLevel.BEGINNER, min(80.0, 30 + percentage))


async def apply_placement(
    reviews: ReviewService, user_id: str, topic: str, result: PlacementResult
) -> ProficiencyState:
    proficiency, confidence = seed_proficiency(
        result.recommended_difficulty, result.confidence_score
    )
    logger.info(
        f"Placement for {user_id}/{topic}: {result.recommended_difficulty.value} "
        f"-> proficiency={proficiency} confidence={confidence:.2f}"
    )
    return await reviews.initialize_proficiency(user_id, topic, proficiency, confidence)
