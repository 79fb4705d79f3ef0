import sqlite3
from contextlib import closing
from datetime import datetime, timedelta, timezone

import pytest

from studypet.domain.models import (
    Card,
    CardContent,
    Deck,
    PetStage,
    ProficiencyState,
    Profile,
    ReviewRecord,
    ReviewSignals,
)
from studypet.infrastructure.adapters.sqlite_store import SqliteStore

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db(tmp_path):
    return SqliteStore(tmp_path / "nested" / "studypet.db")


def card(card_id, due, ease=2.5, deck_id="d1"):
    return Card(
        id=card_id,
        deck_id=deck_id,
        content=CardContent(question=f"Q {card_id}", answer=f"A {card_id}", options=["x", "y"]),
        next_review=due,
        created_at=NOW,
        ease_factor=ease,
        difficulty=5,
    )


async def _seed(db):
    await db.add_deck(
        Deck(id="d1", user_id="alice", topic="Biology", created_at=NOW),
        [
            card("late", NOW + timedelta(days=1)),
            card("old", NOW - timedelta(days=2), ease=1.4),
            card("fresh", NOW - timedelta(microseconds=500), ease=2.2),
        ],
    )
    await db.add_deck(
        Deck(id="d2", user_id="alice", topic="History", created_at=NOW + timedelta(hours=1)),
        [card("hist", NOW - timedelta(days=1), ease=1.3, deck_id="d2")],
    )
    await db.add_deck(
        Deck(id="d3", user_id="bob", topic="Biology", created_at=NOW),
        [card("bobs", NOW - timedelta(days=5), deck_id="d3")],
    )


def test_init_creates_parent_dirs(tmp_path):
    SqliteStore(tmp_path / "a" / "b" / "x.db")
    assert (tmp_path / "a" / "b" / "x.db").exists()


@pytest.mark.asyncio
async def test_card_roundtrip_includes_topic(db):
    await _seed(db)
    loaded = await db.get_card("old")
    assert loaded.topic == "Biology"
    assert loaded.content.options == ["x", "y"]
    assert loaded.next_review == NOW - timedelta(days=2)
    assert loaded.ease_factor == 1.4
    assert await db.get_card("missing") is None


@pytest.mark.asyncio
async def test_save_card_updates_schedule(db):
    await _seed(db)
    loaded = await db.get_card("late")
    loaded.interval = 6
    loaded.ease_factor = 2.6
    loaded.next_review = NOW + timedelta(days=6)
    await db.save_card(loaded)

    again = await db.get_card("late")
    assert (again.interval, again.ease_factor) == (6, 2.6)
    assert again.next_review == NOW + timedelta(days=6)


@pytest.mark.asyncio
async def test_due_cards_are_ordered_and_scoped(db):
    await _seed(db)
    due = await db.get_due_cards("alice", NOW)
    assert [c.id for c in due] == ["old", "hist", "fresh"]

    due = await db.get_due_cards("alice", NOW, topic="Biology")
    assert [c.id for c in due] == ["old", "fresh"]


@pytest.mark.asyncio
async def test_leech_cards_worst_first(db):
    await _seed(db)
    leeches = await db.get_leech_cards("alice", "Biology", 2.3, 5)
    assert [c.id for c in leeches] == ["old", "fresh"]
    assert [c.id for c in await db.get_leech_cards("alice", "Biology", 2.3, 1)] == ["old"]


@pytest.mark.asyncio
async def test_decks_newest_first(db):
    await _seed(db)
    assert [d.id for d in await db.get_decks("alice")] == ["d2", "d1"]


@pytest.mark.asyncio
async def test_cards_collection_is_scoped_to_user(db):
    await _seed(db)
    cards = await db.get_cards("alice")
    assert [c.id for c in cards] == ["fresh", "hist", "late", "old"]
    assert {c.topic for c in cards} == {"Biology", "History"}
    assert [c.id for c in await db.get_cards("bob")] == ["bobs"]
    assert await db.get_cards("carol") == []


@pytest.mark.asyncio
async def test_proficiency_upsert(db):
    assert await db.get_proficiency("alice", "Biology") is None

    state = ProficiencyState(user_id="alice", topic="Biology")
    await db.save_proficiency(state)
    state.proficiency_score = 61.5
    state.total_reviews = 3
    state.avg_response_time_ms = 4100
    state.last_updated = NOW
    await db.save_proficiency(state)

    loaded = await db.get_proficiency("alice", "Biology")
    assert loaded.proficiency_score == 61.5
    assert loaded.confidence == 0.3
    assert loaded.total_reviews == 3
    assert loaded.avg_response_time_ms == 4100
    assert loaded.last_updated == NOW


@pytest.mark.asyncio
async def test_profile_roundtrip(db):
    profile = Profile(
        id="alice",
        xp=120,
        stage=PetStage.BABY,
        coins=30,
        current_streak=2,
        last_study_date=NOW,
        pet_name="Sprout",
        learning_goals=["Pass biology"],
    )
    await db.save_profile(profile)

    loaded = await db.get_profile("alice")
    assert loaded == profile
    assert await db.get_profile("bob") is None


@pytest.mark.asyncio
async def test_record_review(db):
    signals = ReviewSignals(grade=4, response_time_ms=3000, was_flipped=True, card_difficulty=6)
    await db.record_review(ReviewRecord("alice", "c1", signals, 55.0, NOW))
    await db.record_review(ReviewRecord("alice", "c2", signals, 56.0, NOW))
    with closing(sqlite3.connect(db.db_path)) as conn:
        rows = conn.execute(
            "SELECT card_id, was_flipped, proficiency_at_time FROM review_signals"
            " WHERE user_id = ? ORDER BY id",
            ("alice",),
        ).fetchall()
    assert rows == [("c1", 1, 55.0), ("c2", 1, 56.0)]
