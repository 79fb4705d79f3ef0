"""
Review Service: application layer orchestrator.

Runs one review event through the learning core:
1. Load the card (and the profile) from the repositories
2. Schedule the next review (SM-2)
3. Score the raw signals, update proficiency, pick the next target difficulty
4. Apply pet/reward bookkeeping
5. Persist everything

The learning functions are pure; all reads and writes happen here, and each
read-modify-write cycle holds a per-key lock for its whole duration.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from studypet.application.learning import (
    calculate_performance,
    calculate_proficiency_update,
    calculate_review,
    calculate_target_difficulty,
    update_average_response_time,
)
from studypet.application.pet import (
    FeedResult,
    apply_boss_result,
    apply_review_reward,
    apply_study_streak,
    feed,
)
from studypet.domain.constants import (
    DEFAULT_PROFICIENCY,
    DEFAULT_TOPIC,
    EASE_BOOST_CAP,
    EASE_BOOST_MULTIPLIER,
    EASE_BOOST_PROFICIENCY,
    EASE_DECIMALS,
    NEUTRAL_CARD_DIFFICULTY,
)
from studypet.domain.errors import UpstreamDataUnavailable
from studypet.domain.models import (
    Card,
    Deck,
    ProficiencyState,
    PerformanceResult,
    ProficiencyUpdate,
    Profile,
    ReviewOutcome,
    ReviewRecord,
    ReviewSignals,
    SRSResult,
    TargetDifficulty,
)
from studypet.domain.ports import (
    CardRepository,
    ProficiencyRepository,
    ProfileRepository,
    ReviewLog,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawSignals:
    """
    Signals as captured by a client. `card_difficulty` is optional and is
    filled in from the card (or the neutral default) before scoring.
    """

    response_time_ms: int
    was_flipped: bool
    card_difficulty: float | None = None


class KeyedLocks:
    """
    One asyncio.Lock per key, created on first use.

    A key is dropped once no task holds or waits on its lock, so the map only
    ever contains keys with reviews in flight.
    """

    def __init__(self):
        self._locks: dict[tuple, asyncio.Lock] = {}
        self._holders: dict[tuple, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, *key):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]


class ReviewService:
    """
    Application service for submitting reviews and reading learning state.

    Depends on repository ports only, never on a concrete store.
    """

    def __init__(
        self,
        cards: CardRepository,
        proficiencies: ProficiencyRepository,
        profiles: ProfileRepository,
        review_log: ReviewLog,
        ease_boost: bool = True,
    ):
        self._cards = cards
        self._proficiencies = proficiencies
        self._profiles = profiles
        self._log = review_log
        self._ease_boost = ease_boost
        self._card_locks = KeyedLocks()
        self._topic_locks = KeyedLocks()
        self._profile_locks = KeyedLocks()

    async def submit_review(
        self,
        user_id: str,
        card_id: str,
        grade: int,
        topic: str | None = None,
        signals: RawSignals | None = None,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """
        Apply one review to the card, the user's topic proficiency and the pet.

        Raises:
            UpstreamDataUnavailable: If the card or the user's profile is missing.
        """
        if now is None:
            now = datetime.now(timezone.utc)

        # Lock order is always card -> profile -> (user, topic)
        async with self._card_locks.hold(card_id), self._profile_locks.hold(user_id):
            card = await self._cards.get_card(card_id)
            if card is None:
                raise UpstreamDataUnavailable(f"Card not found: {card_id}")
            profile = await self._require_profile(user_id)

            card_topic = topic or card.topic or DEFAULT_TOPIC
            srs = calculate_review(card.interval, card.ease_factor, grade, now=now)

            performance = None
            proficiency_update = None
            target = None
            if signals is not None:
                review_signals = self._complete_signals(grade, signals, card)
                async with self._topic_locks.hold(user_id, card_topic):
                    performance, proficiency_update, target = await self._update_proficiency(
                        user_id, card_id, card_topic, review_signals, now
                    )

                if self._ease_boost:
                    srs = self._boost_ease(srs, proficiency_update)

            pet_update = apply_review_reward(profile, grade)
            streak_update = apply_study_streak(profile, now)
            await self._profiles.save_profile(profile)

            card.interval = srs.interval
            card.ease_factor = srs.ease_factor
            card.next_review = srs.next_review
            await self._cards.save_card(card)

        logger.debug(
            f"Reviewed {card_id} grade={grade} -> interval={srs.interval} "
            f"ease={srs.ease_factor}"
        )
        return ReviewOutcome(
            card_update=srs,
            pet_update=pet_update,
            streak_update=streak_update,
            topic=card_topic,
            performance=performance,
            proficiency_update=proficiency_update,
            target=target,
        )

    @staticmethod
    def _complete_signals(grade: int, signals: RawSignals, card: Card) -> ReviewSignals:
        difficulty = signals.card_difficulty
        if difficulty is None:
            difficulty = card.difficulty if card.difficulty is not None else NEUTRAL_CARD_DIFFICULTY
        return ReviewSignals(
            grade=grade,
            response_time_ms=signals.response_time_ms,
            was_flipped=signals.was_flipped,
            card_difficulty=difficulty,
        )

    async def _update_proficiency(
        self,
        user_id: str,
        card_id: str,
        topic: str,
        signals: ReviewSignals,
        now: datetime,
    ) -> tuple[PerformanceResult, ProficiencyUpdate, TargetDifficulty]:
        state = await self._proficiencies.get_proficiency(user_id, topic)
        if state is None:
            state = ProficiencyState(user_id=user_id, topic=topic)
            logger.info(f"Created proficiency record for {user_id}/{topic}")

        performance = calculate_performance(signals, state.proficiency_score)
        update = calculate_proficiency_update(
            state.proficiency_score, state.confidence, performance
        )

        proficiency_at_time = state.proficiency_score
        state.proficiency_score = update.new_proficiency
        state.confidence = update.new_confidence
        state.total_reviews += 1
        state.avg_response_time_ms = update_average_response_time(
            state.avg_response_time_ms, signals.response_time_ms
        )
        state.last_updated = now
        await self._proficiencies.save_proficiency(state)

        await self._log.record_review(
            ReviewRecord(
                user_id=user_id,
                card_id=card_id,
                signals=signals,
                proficiency_at_time=proficiency_at_time,
                recorded_at=now,
            )
        )

        target = calculate_target_difficulty(update.new_proficiency)
        return performance, update, target

    @staticmethod
    def _boost_ease(srs: SRSResult, update: ProficiencyUpdate) -> SRSResult:
        """Proficient learners get slightly faster interval growth, up to the cap."""
        if update.new_proficiency <= EASE_BOOST_PROFICIENCY or srs.ease_factor >= EASE_BOOST_CAP:
            return srs
        boosted = min(EASE_BOOST_CAP, srs.ease_factor * EASE_BOOST_MULTIPLIER)
        return replace(srs, ease_factor=round(boosted, EASE_DECIMALS))

    async def get_due_cards(
        self, user_id: str, topic: str | None = None, now: datetime | None = None
    ) -> list[Card]:
        if now is None:
            now = datetime.now(timezone.utc)
        return await self._cards.get_due_cards(user_id, now, topic)

    async def list_decks(self, user_id: str) -> list[Deck]:
        return await self._cards.get_decks(user_id)

    async def list_cards(self, user_id: str, topic: str | None = None) -> list[Card]:
        """The user's whole card collection, newest first, optionally for one topic."""
        cards = await self._cards.get_cards(user_id)
        if topic is not None:
            cards = [c for c in cards if c.topic == topic]
        return cards

    async def get_proficiency(self, user_id: str, topic: str) -> ProficiencyState | None:
        return await self._proficiencies.get_proficiency(user_id, topic)

    async def get_target_difficulty(
        self, user_id: str, topic: str
    ) -> tuple[TargetDifficulty, float]:
        """
        Target difficulty for new content on a topic.

        Returns:
            (target, proficiency) where proficiency defaults to 50 for an unseen topic.
        """
        state = await self._proficiencies.get_proficiency(user_id, topic)
        proficiency = state.proficiency_score if state else DEFAULT_PROFICIENCY
        return calculate_target_difficulty(proficiency), proficiency

    async def initialize_proficiency(
        self, user_id: str, topic: str, proficiency: float, confidence: float
    ) -> ProficiencyState:
        """Seed (or reseed) a topic record, e.g. from a placement assessment."""
        async with self._topic_locks.hold(user_id, topic):
            state = ProficiencyState(
                user_id=user_id,
                topic=topic,
                proficiency_score=proficiency,
                confidence=confidence,
                last_updated=datetime.now(timezone.utc),
            )
            await self._proficiencies.save_proficiency(state)
        return state

    async def initialize_user(
        self,
        user_id: str,
        pet_name: str | None = None,
        pet_type: str | None = None,
        goals: list[str] | None = None,
    ) -> Profile:
        """Create (or reset) a user's profile with a fresh egg."""
        async with self._profile_locks.hold(user_id):
            profile = Profile(
                id=user_id, pet_name=pet_name, pet_type=pet_type, learning_goals=goals or []
            )
            await self._profiles.save_profile(profile)
        logger.info(f"Initialized profile for {user_id}")
        return profile

    async def get_profile(self, user_id: str) -> Profile:
        return await self._require_profile(user_id)

    async def feed_pet(self, user_id: str) -> FeedResult:
        async with self._profile_locks.hold(user_id):
            profile = await self._require_profile(user_id)
            result = feed(profile)
            if result.fed:
                await self._profiles.save_profile(profile)
        return result

    async def submit_boss_result(self, user_id: str, passed: bool) -> str:
        async with self._profile_locks.hold(user_id):
            profile = await self._require_profile(user_id)
            message = apply_boss_result(profile, passed)
            await self._profiles.save_profile(profile)
        return message

    async def _require_profile(self, user_id: str) -> Profile:
        profile = await self._profiles.get_profile(user_id)
        if profile is None:
            raise UpstreamDataUnavailable(f"Profile not found: {user_id}")
        return profile
