"""
Ports (interfaces) for persistence and content generation.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card, Deck, ProficiencyState, Profile, ReviewRecord


class CardRepository(ABC):
    """
    Port for card and deck storage.

    Implementations:
        - InMemoryStore: Process-local dictionaries.
        - SqliteStore: A local SQLite file.
    """

    @abstractmethod
    async def get_card(self, card_id: str) -> Card | None:
        """Return the card with its deck topic populated, or None."""
        pass

    @abstractmethod
    async def save_card(self, card: Card) -> None:
        """Persist the scheduling state of an existing card."""
        pass

    @abstractmethod
    async def add_deck(self, deck: Deck, cards: list[Card]) -> None:
        """Persist a new deck and its cards."""
        pass

    @abstractmethod
    async def get_due_cards(
        self, user_id: str, now: datetime, topic: str | None = None
    ) -> list[Card]:
        """
        Fetch cards owned by the user whose next review is at or before `now`.

        Returns:
            Cards sorted by next_review ascending.
        """
        pass

    @abstractmethod
    async def get_leech_cards(
        self, user_id: str, topic: str, max_ease: float, limit: int
    ) -> list[Card]:
        """
        Fetch the user's cards for a topic with ease below `max_ease`.

        Returns:
            At most `limit` cards, lowest ease first.
        """
        pass

    @abstractmethod
    async def get_decks(self, user_id: str) -> list[Deck]:
        """Return the user's decks, newest first."""
        pass

    @abstractmethod
    async def get_cards(self, user_id: str) -> list[Card]:
        """Return every card in the user's decks, newest first."""
        pass


class ProficiencyRepository(ABC):
    @abstractmethod
    async def get_proficiency(self, user_id: str, topic: str) -> ProficiencyState | None:
        pass

    @abstractmethod
    async def save_proficiency(self, state: ProficiencyState) -> None:
        """Insert or replace the record keyed by (user_id, topic)."""
        pass


class ProfileRepository(ABC):
    @abstractmethod
    async def get_profile(self, user_id: str) -> Profile | None:
        pass

    @abstractmethod
    async def save_profile(self, profile: Profile) -> None:
        pass


class ReviewLog(ABC):
    @abstractmethod
    async def record_review(self, record: ReviewRecord) -> None:
        pass


class ContentGenerator(ABC):
    """
    Port for the external text-generation capability.

    Implementations return the raw completion text; parsing is done by the
    application layer.
    """

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        pass

    async def aclose(self) -> None:
        """Release any open connections. No-op by default."""
        return None
