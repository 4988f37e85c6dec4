"""Local SQLite deck source and progress store."""
import json
import sqlite3
import time
from datetime import datetime

from flashdeck.db import get_connection, get_setting, set_setting
from flashdeck.errors import DeckLoadError, ProgressStoreError
from flashdeck.models import Card, Deck
from flashdeck.progress import merge_progress

USER_ID_KEY = "user_id"


def list_decks(db_path: str) -> list:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT d.id, d.title, COUNT(c.id) as card_count
        FROM decks d LEFT JOIN cards c ON c.deck_id = d.id
        GROUP BY d.id ORDER BY d.title"""
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def resolve_user_id(db_path: str, configured: str | None = None) -> str:
    """Configured id first, then the stored one, else a new temporary id."""
    if configured:
        return configured
    stored = get_setting(db_path, USER_ID_KEY)
    if stored:
        return stored
    user_id = f"temp-user-{int(time.time() * 1000)}"
    set_setting(db_path, USER_ID_KEY, user_id)
    return user_id


class SqliteDeckSource:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def load_deck(self, deck_id: str) -> Deck:
        try:
            conn = get_connection(self.db_path)
            try:
                deck = conn.execute("SELECT * FROM decks WHERE id = ?", (deck_id,)).fetchone()
                cards = conn.execute(
                    "SELECT * FROM cards WHERE deck_id = ? ORDER BY position", (deck_id,)
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise DeckLoadError(f"Failed to load deck {deck_id}: {exc}") from exc
        if deck is None:
            raise DeckLoadError(f"Deck not found: {deck_id}")
        return Deck(
            id=deck["id"],
            title=deck["title"],
            cards=tuple(Card(c["id"], c["question"], c["answer"], c["image"]) for c in cards),
        )


class SqliteProgressStore:
    """Keeps one JSON progress document per (user, deck)."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def load(self, deck_id: str, user_id: str) -> dict | None:
        try:
            conn = get_connection(self.db_path)
            try:
                row = conn.execute(
                    "SELECT data FROM progress WHERE user_id = ? AND deck_id = ?", (user_id, deck_id)
                ).fetchone()
            finally:
                conn.close()
            return json.loads(row["data"]) if row else None
        except (sqlite3.Error, ValueError) as exc:
            raise ProgressStoreError(f"Failed to load progress: {exc}") from exc

    def save(self, deck_id: str, user_id: str, partial: dict) -> dict:
        try:
            conn = get_connection(self.db_path)
            try:
                row = conn.execute(
                    "SELECT data FROM progress WHERE user_id = ? AND deck_id = ?", (user_id, deck_id)
                ).fetchone()
                merged = merge_progress(json.loads(row["data"]) if row else None, partial)
                conn.execute(
                    """INSERT INTO progress (user_id, deck_id, data, updated_at) VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id, deck_id) DO UPDATE SET data=excluded.data, updated_at=excluded.updated_at""",
                    (user_id, deck_id, json.dumps(merged), datetime.now().isoformat()),
                )
                conn.commit()
            finally:
                conn.close()
            return merged
        except (sqlite3.Error, ValueError) as exc:
            raise ProgressStoreError(f"Failed to save progress: {exc}") from exc
