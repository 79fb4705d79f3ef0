from datetime import datetime, timedelta, timezone

import pytest

from studypet.application.review_service import ReviewService
from studypet.domain.models import Card, CardContent, Deck, Profile
from studypet.infrastructure.adapters.memory_store import InMemoryStore

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config lookups and the default database location
    monkeypatch.setenv("HOME", str(home))
    for var in ("STUDYPET_API_KEY", "STUDYPET_BACKEND", "STUDYPET_DB_PATH"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    def _make(card_id="c1", deck_id="d1", ease=2.5, interval=0, difficulty=None, due=NOW):
        return Card(
            id=card_id,
            deck_id=deck_id,
            content=CardContent(question=f"Q {card_id}", answer=f"A {card_id}"),
            next_review=due,
            created_at=NOW - timedelta(days=30),
            interval=interval,
            ease_factor=ease,
            difficulty=difficulty,
        )

    return _make


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def reviews(store):
    return ReviewService(cards=store, proficiencies=store, profiles=store, review_log=store)


@pytest.fixture
def seeded(store, make_card):
    """Seeds user 'alice' with a profile and one deck 'd1' (default: card c1 on Biology)."""

    async def _seed(cards=None, topic="Biology", profile=None):
        await store.save_profile(profile or Profile(id="alice"))
        deck = Deck(id="d1", user_id="alice", topic=topic, created_at=NOW)
        await store.add_deck(deck, cards if cards is not None else [make_card()])
        return store

    return _seed
