import json
from unittest.mock import AsyncMock

import pytest

from studypet.application.placement import (
    PlacementResponse,
    PlacementResult,
    apply_placement,
    evaluate_placement,
    generate_placement_quiz,
)
from studypet.domain.errors import ContentGenerationError
from studypet.domain.models import PlacementLevel

QUIZ = [
    {"question": "Capital of France?", "options": ["Paris", "Rome"], "answer": "Paris"},
    {"question": "Letters only", "options": ["A", "B", "C"], "answer": "A"},
    {"question": "Answer missing", "options": ["x", "y"], "answer": "z"},
    {"question": "One option", "options": ["only"], "answer": "only"},
    {"question": "No options"},
]


def response(correct=True, time_ms=5000, index=0):
    return PlacementResponse(
        question_index=index, user_answer="x", correct=correct, time_ms=time_ms
    )


# ---------- Quiz generation ----------


@pytest.mark.asyncio
async def test_quiz_keeps_only_usable_questions():
    generator = AsyncMock()
    generator.complete.return_value = "```json\n" + json.dumps(QUIZ) + "\n```"

    questions = await generate_placement_quiz(generator, "Geography")

    assert [q.question for q in questions] == ["Capital of France?"]
    assert questions[0].difficulty == "medium"


@pytest.mark.asyncio
async def test_quiz_prompt_lists_questions_to_avoid():
    generator = AsyncMock()
    generator.complete.return_value = "[]"

    await generate_placement_quiz(generator, "Geography", avoid=["Capital of Spain?"])

    system_prompt, user_prompt, temperature = generator.complete.await_args.args
    assert "DO NOT repeat these questions: Capital of Spain?" in system_prompt
    assert "Geography" in user_prompt
    assert temperature == 0.8


@pytest.mark.asyncio
async def test_quiz_generation_failure_returns_empty():
    generator = AsyncMock()
    generator.complete.side_effect = ContentGenerationError("down")
    assert await generate_placement_quiz(generator, "Geography") == []


@pytest.mark.asyncio
async def test_unparseable_quiz_returns_empty():
    generator = AsyncMock()
    generator.complete.return_value = "not json"
    assert await generate_placement_quiz(generator, "Geography") == []


# ---------- Evaluation ----------


def test_no_responses_defaults_to_beginner():
    result = evaluate_placement([])
    assert result.recommended_difficulty == PlacementLevel.BEGINNER
    assert result.confidence_score == 30


def test_all_fast_and_correct_is_advanced():
    result = evaluate_placement([response(index=i) for i in range(3)])
    assert result.recommended_difficulty == PlacementLevel.ADVANCED
    assert result.confidence_score == 90


def test_correct_but_slow_is_intermediate():
    responses = [response(time_ms=15000), response(time_ms=12000), response(correct=False)]
    result = evaluate_placement(responses)
    # 2 / 4.5 = 44.4%
    assert result.recommended_difficulty == PlacementLevel.INTERMEDIATE
    assert result.confidence_score == pytest.approx(50 + 44.444 / 2, abs=0.01)


def test_mostly_wrong_is_beginner():
    responses = [response(), response(correct=False), response(correct=False)]
    result = evaluate_placement(responses)
    # 1.5 / 4.5 = 33.3%
    assert result.recommended_difficulty == PlacementLevel.BEGINNER
    assert result.confidence_score == pytest.approx(63.333, abs=0.01)


# ---------- Seeding ----------


@pytest.mark.asyncio
async def test_apply_placement_seeds_proficiency(reviews, store):
    result = PlacementResult(PlacementLevel.ADVANCED, 90.0)

    state = await apply_placement(reviews, "alice", "Geography", result)

    assert state.proficiency_score == 75
    assert state.confidence == 0.6
    stored = await store.get_proficiency("alice", "Geography")
    assert stored.proficiency_score == 75
