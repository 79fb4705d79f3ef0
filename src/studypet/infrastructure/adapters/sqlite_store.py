"""
SQLite repository: persists decks, cards, proficiency, profiles and the
review signal log in a single local database file.

Timestamps are stored as fixed-width UTC ISO-8601 strings so they sort lexically.
"""

import json
import logging
import sqlite3
from contextlib import closing
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from studypet.domain.models import (
    Card,
    CardContent,
    Deck,
    PetStage,
    ProficiencyState,
    Profile,
    ReviewRecord,
)
from studypet.domain.ports import (
    CardRepository,
    ProficiencyRepository,
    ProfileRepository,
    ReviewLog,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS decks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    topic TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    deck_id TEXT NOT NULL REFERENCES decks(id),
    content TEXT NOT NULL,             -- JSON CardContent
    interval INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    next_review TEXT NOT NULL,
    difficulty REAL,                   -- 1-10, NULL if unknown
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS topic_proficiency (
    user_id TEXT NOT NULL,
    topic TEXT NOT NULL,
    proficiency_score REAL NOT NULL,
    confidence REAL NOT NULL,
    total_reviews INTEGER NOT NULL DEFAULT 0,
    avg_response_time_ms INTEGER,
    last_updated TEXT,
    PRIMARY KEY (user_id, topic)
);

CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    xp INTEGER NOT NULL DEFAULT 0,
    health INTEGER NOT NULL DEFAULT 100,
    stage TEXT NOT NULL DEFAULT 'egg',
    coins INTEGER NOT NULL DEFAULT 0,
    current_streak INTEGER NOT NULL DEFAULT 0,
    last_study_date TEXT,
    pet_name TEXT,
    pet_type TEXT,
    learning_goals TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS review_signals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    card_id TEXT NOT NULL,
    grade INTEGER NOT NULL,
    response_time_ms INTEGER NOT NULL,
    was_flipped INTEGER NOT NULL,
    card_difficulty REAL NOT NULL,
    proficiency_at_time REAL NOT NULL,
    recorded_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_cards_next_review ON cards(next_review);
CREATE INDEX IF NOT EXISTS idx_cards_deck ON cards(deck_id);
"""


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqliteStore(CardRepository, ProficiencyRepository, ProfileRepository, ReviewLog):
    """
    Repository over a local SQLite file.

    Each call opens a short-lived connection; writes are committed before the
    call returns.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.init_db()

    def init_db(self) -> None:
        """Create the database file and tables if they do not exist yet."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.executescript(_SCHEMA)
        logger.debug(f"SQLite store ready at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    # ---------- Cards ----------

    _CARD_SELECT = """
        SELECT cards.*, decks.topic AS topic
        FROM cards JOIN decks ON decks.id = cards.deck_id
    """

    @staticmethod
    def _row_to_card(row: sqlite3.Row) -> Card:
        return Card(
            id=row["id"],
            deck_id=row["deck_id"],
            content=CardContent(**json.loads(row["content"])),
            next_review=_from_iso(row["next_review"]),
            created_at=_from_iso(row["created_at"]),
            interval=row["interval"],
            ease_factor=row["ease_factor"],
            difficulty=row["difficulty"],
            topic=row["topic"],
        )

    async def get_card(self, card_id: str) -> Card | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                self._CARD_SELECT + " WHERE cards.id = ?", (card_id,)
            ).fetchone()
        return self._row_to_card(row) if row else None

    async def save_card(self, card: Card) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                UPDATE cards SET interval = ?, ease_factor = ?, next_review = ?, difficulty = ?
                WHERE id = ?
                """,
                (
                    card.interval,
                    card.ease_factor,
                    _to_iso(card.next_review),
                    card.difficulty,
                    card.id,
                ),
            )

    async def add_deck(self, deck: Deck, cards: list[Card]) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO decks (id, user_id, topic, created_at) VALUES (?, ?, ?, ?)",
                (deck.id, deck.user_id, deck.topic, _to_iso(deck.created_at)),
            )
            conn.executemany(
                """
                INSERT INTO cards
                    (id, deck_id, content, interval, ease_factor, next_review,
                     difficulty, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        c.id,
                        deck.id,
                        json.dumps(asdict(c.content)),
                        c.interval,
                        c.ease_factor,
                        _to_iso(c.next_review),
                        c.difficulty,
                        _to_iso(c.created_at),
                    )
                    for c in cards
                ],
            )

    async def get_due_cards(
        self, user_id: str, now: datetime, topic: str | None = None
    ) -> list[Card]:
        query = self._CARD_SELECT + " WHERE decks.user_id = ? AND cards.next_review <= ?"
        params: list = [user_id, _to_iso(now)]
        if topic is not None:
            query += " AND decks.topic = ?"
            params.append(topic)
        query += " ORDER BY cards.next_review ASC"

        with closing(self._connect()) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_card(r) for r in rows]

    async def get_leech_cards(
        self, user_id: str, topic: str, max_ease: float, limit: int
    ) -> list[Card]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                self._CARD_SELECT
                + """
                WHERE decks.user_id = ? AND decks.topic = ? AND cards.ease_factor < ?
                ORDER BY cards.ease_factor ASC
                LIMIT ?
                """,
                (user_id, topic, max_ease, limit),
            ).fetchall()
        return [self._row_to_card(r) for r in rows]

    async def get_decks(self, user_id: str) -> list[Deck]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT * FROM decks WHERE user_id = ? ORDER BY created_at DESC", (user_id,)
            ).fetchall()
        return [
            Deck(
                id=r["id"],
                user_id=r["user_id"],
                topic=r["topic"],
                created_at=_from_iso(r["created_at"]),
            )
            for r in rows
        ]

    async def get_cards(self, user_id: str) -> list[Card]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                self._CARD_SELECT
                + " WHERE decks.user_id = ? ORDER BY cards.created_at DESC, cards.id",
                (user_id,),
            ).fetchall()
        return [self._row_to_card(r) for r in rows]

    # ---------- Proficiency ----------

    async def get_proficiency(self, user_id: str, topic: str) -> ProficiencyState | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM topic_proficiency WHERE user_id = ? AND topic = ?",
                (user_id, topic),
            ).fetchone()
        if row is None:
            return None
        return ProficiencyState(
            user_id=row["user_id"],
            topic=row["topic"],
            proficiency_score=row["proficiency_score"],
            confidence=row["confidence"],
            total_reviews=row["total_reviews"],
            avg_response_time_ms=row["avg_response_time_ms"],
            last_updated=_from_iso(row["last_updated"]),
        )

    async def save_proficiency(self, state: ProficiencyState) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO topic_proficiency
                    (user_id, topic, proficiency_score, confidence, total_reviews,
                     avg_response_time_ms, last_updated)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    state.user_id,
                    state.topic,
                    state.proficiency_score,
                    state.confidence,
                    state.total_reviews,
                    state.avg_response_time_ms,
                    _to_iso(state.last_updated),
                ),
            )

    # ---------- Profiles ----------

    async def get_profile(self, user_id: str) -> Profile | None:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return Profile(
            id=row["id"],
            xp=row["xp"],
            health=row["health"],
            stage=PetStage(row["stage"]),
            coins=row["coins"],
            current_streak=row["current_streak"],
            last_study_date=_from_iso(row["last_study_date"]),
            pet_name=row["pet_name"],
            pet_type=row["pet_type"],
            learning_goals=json.loads(row["learning_goals"]),
        )

    async def save_profile(self, profile: Profile) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO profiles
                    (id, xp, health, stage, coins, current_streak, last_study_date,
                     pet_name, pet_type, learning_goals)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.id,
                    profile.xp,
                    profile.health,
                    PetStage(profile.stage).value,
                    profile.coins,
                    profile.current_streak,
                    _to_iso(profile.last_study_date),
                    profile.pet_name,
                    profile.pet_type,
                    json.dumps(profile.learning_goals),
                ),
            )

    # ---------- Review log ----------

    async def record_review(self, record: ReviewRecord) -> None:
        s = record.signals
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO review_signals
                    (user_id, card_id, grade, response_time_ms, was_flipped,
                     card_difficulty, proficiency_at_time, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.card_id,
                    s.grade,
                    s.response_time_ms,
                    int(s.was_flipped),
                    s.card_difficulty,
                    record.proficiency_at_time,
                    _to_iso(record.recorded_at),
                ),
            )
