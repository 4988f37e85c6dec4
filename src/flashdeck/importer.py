"""Import decks from files into the local database."""
import json
import re
from datetime import datetime
from pathlib import Path

from flashdeck.db import get_connection
from flashdeck.errors import DeckImportError


def read_deck_file(file_path: str) -> dict:
    """Parse a deck file into {"title", "id"?, "cards": [...]}.

    JSON and YAML files hold the deck as a mapping. Plain text files hold one
    card per line as question<TAB>answer, the way most flashcard apps export.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        import yaml
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise DeckImportError(f"{path.name}: invalid YAML: {exc}") from exc
    else:
        cards = []
        for line in path.read_text(encoding="utf-8").splitlines():
            if "\t" not in line:
                continue
            question, answer = line.split("\t", 1)
            if question.strip():
                cards.append({"question": question.strip(), "answer": answer.strip()})
        data = {"title": path.stem, "cards": cards}

    # {"deck": {...}} API payloads import as-is
    if isinstance(data, dict) and isinstance(data.get("deck"), dict):
        data = data["deck"]
    if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
        raise DeckImportError(f"{path.name}: expected a mapping with a 'cards' list")
    data.setdefault("title", path.stem)
    return data


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "deck"


def import_deck(db_path: str, file_path: str, deck_id: str | None = None) -> dict:
    """Import a deck file, replacing any deck stored under the same id."""
    try:
        data = read_deck_file(file_path)
    except (OSError, ValueError) as exc:
        raise DeckImportError(f"Could not read {file_path}: {exc}") from exc

    cards = []
    seen = set()
    for i, raw in enumerate(data["cards"], 1):
        if not isinstance(raw, dict) or not raw.get("question") or raw.get("answer") is None:
            raise DeckImportError(f"card {i}: 'question' and 'answer' are required")
        card_id = str(raw.get("id", raw.get("_id", f"c{i}")))
        if card_id in seen:
            raise DeckImportError(f"card {i}: duplicate id {card_id!r}")
        seen.add(card_id)
        cards.append((card_id, str(raw["question"]), str(raw["answer"]), raw.get("image")))
    if not cards:
        raise DeckImportError("Deck must contain at least one card.")

    title = str(data["title"])
    deck_id = deck_id or str(data.get("id", data.get("_id", slugify(title))))
    conn = get_connection(db_path)
    conn.execute("DELETE FROM cards WHERE deck_id = ?", (deck_id,))
    conn.execute(
        """INSERT INTO decks (id, title, source, imported_at) VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET title=excluded.title, source=excluded.source, imported_at=excluded.imported_at""",
        (deck_id, title, Path(file_path).name, datetime.now().isoformat()),
    )
    conn.executemany(
        "INSERT INTO cards (deck_id, position, id, question, answer, image) VALUES (?, ?, ?, ?, ?, ?)",
        [(deck_id, pos, *card) for pos, card in enumerate(cards)],
    )
    conn.commit()
    conn.close()
    return {"deck_id": deck_id, "title": title, "card_count": len(cards)}
