"""Seed the database with the bundled sample deck."""
from pathlib import Path

from flashdeck.db import get_connection
from flashdeck.importer import import_deck

CONTENT_DIR = Path(__file__).parent / "content"
SAMPLE_DECK = CONTENT_DIR / "sample_deck.json"


def is_seeded(db_path: str) -> bool:
    """Check whether any deck exists yet."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM decks").fetchone()[0]
    conn.close()
    return count > 0


def seed_sample_deck(db_path: str) -> None:
    if is_seeded(db_path):
        return
    import_deck(db_path, str(SAMPLE_DECK))
