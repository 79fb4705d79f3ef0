"""
Deck Service: generates new study material at the learner's target difficulty.

The content generator is an opaque port; this module only builds prompts,
validates the returned JSON and persists the result.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ValidationError

from studypet.application.id_service import generate_id
from studypet.application.learning import difficulty_guidance, label_to_level
from studypet.application.review_service import ReviewService
from studypet.application.utils.text import parse_json_payload
from studypet.domain.constants import (
    BOSS_MIN_CARDS,
    CARDS_PER_DECK,
    DECK_TEMPERATURE,
    LEECH_EASE_THRESHOLD,
    LEECH_LIMIT,
)
from studypet.domain.errors import ContentGenerationError
from studypet.domain.models import BossEncounter, Card, CardContent, Deck, DifficultyLabel
from studypet.domain.ports import CardRepository, ContentGenerator

logger = logging.getLogger(__name__)


class GeneratedCard(BaseModel):
    question: str
    answer: str
    explanation: str | None = None
    type: Literal["basic", "choice", "input"] = "basic"
    options: list[str] | None = None


class BossQuestion(BaseModel):
    question: str
    options: list[str] = []
    answer: str
    explanation: str | None = None


class GeneratedDeck(BaseModel):
    deck_id: str
    topic: str
    difficulty_label: str
    difficulty: int
    card_ids: list[str]


def _deck_system_prompt(count: int, guidance: str, additional_context: str) -> str:
    return f"""
You are a strictly JSON-speaking teacher.
Create a deck of {count} flashcards on the provided topic.

{guidance}

{additional_context}

Output must be a raw JSON array of objects following this structure:
{{
  "question": "The question string",
  "answer": "The answer string",
  "explanation": "A short explanation of why this answer is correct",
  "type": "basic" | "choice",
  "options": ["Option A", "Option B", "Option C"]
}}
"options" is only required if type is "choice". Mix "basic" and "choice" types.
Do not include markdown formatting.
""".strip()


_BOSS_SYSTEM_PROMPT = """
You are the "Dungeon Master" of a learning game.
Create 3 ULTIMATE BOSS QUESTIONS based on the provided weak concepts.
These should rigorously test the concepts.
Format as a JSON array:
[{"question": "...", "options": ["A", "B", "C", "D"], "answer": "The Correct String", "explanation": "..."}]
""".strip()


class DeckService:
    """Generates decks and boss encounters through the ContentGenerator port."""

    def __init__(
        self,
        cards: CardRepository,
        generator: ContentGenerator,
        reviews: ReviewService,
        cards_per_deck: int = CARDS_PER_DECK,
        temperature: float = DECK_TEMPERATURE,
    ):
        self._cards = cards
        self._generator = generator
        self._reviews = reviews
        self._cards_per_deck = cards_per_deck
        self._temperature = temperature

    async def generate_deck(
        self,
        user_id: str,
        topic: str,
        difficulty_label: str | DifficultyLabel = DifficultyLabel.BEGINNER,
        numeric_difficulty: int | None = None,
        additional_context: str = "",
    ) -> GeneratedDeck:
        """
        Generate and store a new deck for a topic.

        Args:
            user_id: Owner of the new deck.
            topic: Subject of the cards.
            difficulty_label: Label used in the prompt.
            numeric_difficulty: 1-10 level. Derived from the label when omitted.
            additional_context: Extra prompt instructions.

        Raises:
            ContentGenerationError: If generation fails or returns no usable cards.
        """
        label = DifficultyLabel(difficulty_label).value
        level = numeric_difficulty if numeric_difficulty is not None else label_to_level(label)

        system_prompt = _deck_system_prompt(
            self._cards_per_deck, difficulty_guidance(level), additional_context
        )
        completion = await self._generator.complete(
            system_prompt, f"Topic: {topic}, Difficulty: {label}", self._temperature
        )
        contents = self._parse_cards(completion)

        now = datetime.now(timezone.utc)
        deck = Deck(id=generate_id("deck"), user_id=user_id, topic=topic, created_at=now)
        cards = [
            Card(
                id=generate_id("card"),
                deck_id=deck.id,
                content=content,
                next_review=now,
                created_at=now,
                difficulty=level,
                topic=topic,
            )
            for content in contents
        ]
        await self._cards.add_deck(deck, cards)

        logger.info(
            f"Generated deck {deck.id}: topic={topic} {label} ({level}/10) cards={len(cards)}"
        )
        return GeneratedDeck(
            deck_id=deck.id,
            topic=topic,
            difficulty_label=label,
            difficulty=level,
            card_ids=[c.id for c in cards],
        )

    async def generate_next_deck(self, user_id: str, topic: str) -> GeneratedDeck:
        """Generate fresh content at the difficulty the learner's proficiency calls for."""
        target, proficiency = await self._reviews.get_target_difficulty(user_id, topic)
        logger.info(
            f"Adaptive: topic={topic} proficiency={proficiency:.0f} "
            f"target={target.difficulty_label.value} ({target.difficulty}/10)"
        )
        return await self.generate_deck(
            user_id,
            topic,
            difficulty_label=target.difficulty_label,
            numeric_difficulty=target.difficulty,
            additional_context=(
                "Generate COMPLETELY NEW content. Avoid repeating basic concepts. "
                f"Session ID: {int(time.time() * 1000)}"
            ),
        )

    async def generate_boss_encounter(self, user_id: str, topic: str) -> BossEncounter:
        """
        Build a boss fight from the learner's leech cards (lowest ease first).

        Unavailable until at least three leech cards exist for the topic.
        """
        leeches = await self._cards.get_leech_cards(
            user_id, topic, LEECH_EASE_THRESHOLD, LEECH_LIMIT
        )
        if len(leeches) < BOSS_MIN_CARDS:
            return BossEncounter(
                available=False,
                message="Not enough 'Difficult' cards yet to spawn a boss. Keep studying!",
            )

        concepts = "\n".join(f"Q: {c.front} | A: {c.back}" for c in leeches)
        completion = await self._generator.complete(
            _BOSS_SYSTEM_PROMPT, f"Weak Concepts:\n{concepts}", self._temperature
        )
        payload = parse_json_payload(completion)
        if not isinstance(payload, list):
            raise ContentGenerationError("Boss questions must be a JSON array")
        try:
            questions = [BossQuestion.model_validate(q).model_dump() for q in payload]
        except ValidationError as e:
            raise ContentGenerationError(f"Invalid boss question: {e}") from e

        return BossEncounter(available=True, questions=questions)

    @staticmethod
    def _parse_cards(completion: str) -> list[CardContent]:
        payload = parse_json_payload(completion)
        if not isinstance(payload, list):
            raise ContentGenerationError("Generated flashcards must be a JSON array")

        contents: list[CardContent] = []
        for item in payload:
            try:
                card = GeneratedCard.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping malformed generated card: {e}")
                continue
            contents.append(CardContent(**card.model_dump()))

        if not contents:
            raise ContentGenerationError("Generator returned no usable flashcards")
        return contents
