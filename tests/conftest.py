import threading

import pytest

from flashdeck.models import Card, Deck


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_flashdeck.db")
    return db_path


@pytest.fixture
def abc_deck():
    """Deck [A(0), B(1), C(2)]."""
    return Deck(id="deck-1", title="Letters", cards=(
        Card("A", "Question A", "Answer A"),
        Card("B", "Question B", "Answer B"),
        Card("C", "Question C", "Answer C"),
    ))


@pytest.fixture
def big_deck():
    return Deck(id="deck-big", title="Numbers", cards=tuple(
        Card(f"n{i}", f"Q{i}", f"A{i}") for i in range(10)
    ))


class FakeDeckSource:
    def __init__(self, deck=None, error=None):
        self.deck = deck
        self.error = error
        self.calls = []

    def load_deck(self, deck_id):
        self.calls.append(deck_id)
        if self.error:
            raise self.error
        return self.deck


class FakeProgressStore:
    """In-memory progress store recording every save."""

    def __init__(self, progress=None, load_error=None, save_error=None):
        self.progress = progress
        self.load_error = load_error
        self.save_error = save_error
        self.saves = []
        self.lock = threading.Lock()

    def load(self, deck_id, user_id):
        if self.load_error:
            raise self.load_error
        return self.progress

    def save(self, deck_id, user_id, partial):
        with self.lock:
            self.saves.append((deck_id, user_id, partial))
        if self.save_error:
            raise self.save_error

    def partials(self):
        with self.lock:
            return [p for _, _, p in self.saves]


@pytest.fixture
def fake_store():
    return FakeProgressStore()
