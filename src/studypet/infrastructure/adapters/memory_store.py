"""
In-memory repository. Keeps every record in process-local dictionaries.

Records are copied on the way in and out so callers only ever see changes
they explicitly saved, as with a real store.
"""

import copy
from datetime import datetime

from studypet.domain.models import Card, Deck, ProficiencyState, Profile, ReviewRecord
from studypet.domain.ports import (
    CardRepository,
    ProficiencyRepository,
    ProfileRepository,
    ReviewLog,
)


class InMemoryStore(CardRepository, ProficiencyRepository, ProfileRepository, ReviewLog):
    def __init__(self):
        self.decks: dict[str, Deck] = {}
        self.cards: dict[str, Card] = {}
        self.proficiencies: dict[tuple[str, str], ProficiencyState] = {}
        self.profiles: dict[str, Profile] = {}
        self.reviews: list[ReviewRecord] = []

    # ---------- Cards ----------

    async def get_card(self, card_id: str) -> Card | None:
        card = self.cards.get(card_id)
        return copy.deepcopy(card) if card else None

    async def save_card(self, card: Card) -> None:
        self.cards[card.id] = copy.deepcopy(card)

    async def add_deck(self, deck: Deck, cards: list[Card]) -> None:
        self.decks[deck.id] = copy.deepcopy(deck)
        for card in cards:
            card.topic = deck.topic
            self.cards[card.id] = copy.deepcopy(card)

    def _owned_cards(self, user_id: str, topic: str | None) -> list[Card]:
        owned = []
        for card in self.cards.values():
            deck = self.decks.get(card.deck_id)
            if deck is None or deck.user_id != user_id:
                continue
            if topic is not None and deck.topic != topic:
                continue
            owned.append(card)
        return owned

    async def get_due_cards(
        self, user_id: str, now: datetime, topic: str | None = None
    ) -> list[Card]:
        due = [c for c in self._owned_cards(user_id, topic) if c.next_review <= now]
        due.sort(key=lambda c: c.next_review)
        return copy.deepcopy(due)

    async def get_leech_cards(
        self, user_id: str, topic: str, max_ease: float, limit: int
    ) -> list[Card]:
        leeches = [c for c in self._owned_cards(user_id, topic) if c.ease_factor < max_ease]
        leeches.sort(key=lambda c: c.ease_factor)
        return copy.deepcopy(leeches[:limit])

    async def get_decks(self, user_id: str) -> list[Deck]:
        decks = [d for d in self.decks.values() if d.user_id == user_id]
        decks.sort(key=lambda d: d.created_at, reverse=True)
        return copy.deepcopy(decks)

    async def get_cards(self, user_id: str) -> list[Card]:
        cards = self._owned_cards(user_id, None)
        cards.sort(key=lambda c: c.created_at, reverse=True)
        return copy.deepcopy(cards)

    # ---------- Proficiency ----------

    async def get_proficiency(self, user_id: str, topic: str) -> ProficiencyState | None:
        state = self.proficiencies.get((user_id, topic))
        return copy.deepcopy(state) if state else None

    async def save_proficiency(self, state: ProficiencyState) -> None:
        self.proficiencies[(state.user_id, state.topic)] = copy.deepcopy(state)

    # ---------- Profiles ----------

    async def get_profile(self, user_id: str) -> Profile | None:
        profile = self.profiles.get(user_id)
        return copy.deepcopy(profile) if profile else None

    async def save_profile(self, profile: Profile) -> None:
        self.profiles[profile.id] = copy.deepcopy(profile)

    # ---------- Review log ----------

    async def record_review(self, record: ReviewRecord) -> None:
        self.reviews.append(record)
