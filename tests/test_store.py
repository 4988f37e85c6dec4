# tests/test_store.py
import json

import pytest

from flashdeck.db import get_connection, get_setting, init_db
from flashdeck.errors import DeckLoadError, ProgressStoreError
from flashdeck.importer import import_deck
from flashdeck.store import (
    SqliteDeckSource, SqliteProgressStore, list_decks, resolve_user_id,
)


@pytest.fixture
def deck_file(tmp_path):
    f = tmp_path / "letters.json"
    f.write_text(json.dumps({"id": "letters", "title": "Letters", "cards": [
        {"id": "A", "question": "qa", "answer": "aa"},
        {"id": "B", "question": "qb", "answer": "ab", "image": "b.png"},
    ]}))
    return str(f)


def test_load_deck_keeps_card_order(tmp_db, deck_file):
    init_db(tmp_db)
    import_deck(tmp_db, deck_file)
    deck = SqliteDeckSource(tmp_db).load_deck("letters")
    assert deck.title == "Letters"
    assert [c.id for c in deck.cards] == ["A", "B"]
    assert deck.cards[1].image == "b.png"
    assert deck.cards[0].image is None


def test_load_missing_deck_raises(tmp_db):
    init_db(tmp_db)
    with pytest.raises(DeckLoadError):
        SqliteDeckSource(tmp_db).load_deck("nope")


def test_load_deck_without_schema_raises(tmp_db):
    with pytest.raises(DeckLoadError):
        SqliteDeckSource(tmp_db).load_deck("letters")


def test_list_decks_counts_cards(tmp_db, deck_file):
    init_db(tmp_db)
    import_deck(tmp_db, deck_file)
    assert list_decks(tmp_db) == [{"id": "letters", "title": "Letters", "card_count": 2}]


def test_progress_load_empty(tmp_db):
    init_db(tmp_db)
    assert SqliteProgressStore(tmp_db).load("letters", "u1") is None


def test_progress_save_merges(tmp_db):
    init_db(tmp_db)
    store = SqliteProgressStore(tmp_db)
    store.save("letters", "u1", {"starredIds": ["A"]})
    store.save("letters", "u1", {"sessionQueue": [1, 0], "viewerPos": 1})
    store.save("letters", "u1", {"viewerPos": 0})
    assert store.load("letters", "u1") == {"starredIds": ["A"], "sessionQueue": [1, 0], "viewerPos": 0}


def test_progress_is_per_user_and_deck(tmp_db):
    init_db(tmp_db)
    store = SqliteProgressStore(tmp_db)
    store.save("letters", "u1", {"viewerPos": 1})
    store.save("letters", "u2", {"viewerPos": 2})
    store.save("other", "u1", {"viewerPos": 3})
    assert store.load("letters", "u1") == {"viewerPos": 1}
    assert store.load("letters", "u2") == {"viewerPos": 2}
    assert store.load("other", "u1") == {"viewerPos": 3}


def test_progress_save_without_schema_raises(tmp_db):
    with pytest.raises(ProgressStoreError):
        SqliteProgressStore(tmp_db).save("letters", "u1", {"viewerPos": 0})


def test_progress_corrupt_document_raises(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO progress (user_id, deck_id, data) VALUES ('u1', 'letters', '{bad')")
    conn.commit()
    conn.close()
    with pytest.raises(ProgressStoreError):
        SqliteProgressStore(tmp_db).load("letters", "u1")


def test_resolve_user_id_prefers_configured(tmp_db):
    init_db(tmp_db)
    assert resolve_user_id(tmp_db, "configured") == "configured"
    assert get_setting(tmp_db, "user_id") is None


def test_resolve_user_id_generates_and_remembers(tmp_db):
    init_db(tmp_db)
    first = resolve_user_id(tmp_db)
    assert first.startswith("temp-user-")
    assert resolve_user_id(tmp_db) == first
