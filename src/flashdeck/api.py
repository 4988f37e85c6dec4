"""HTTP deck source and progress store.

Endpoints:
    GET   {base}/flashcard/{deck_id}?userId=...           -> {"deck": {...}}
    GET   {base}/flashcard/{deck_id}/progress?userId=...  -> {"progress": {...} | null}
    PATCH {base}/flashcard/{deck_id}/progress?userId=...  partial progress body, merged server side
"""
import requests

from flashdeck.errors import DeckLoadError, ProgressStoreError
from flashdeck.models import Card, Deck

DEFAULT_TIMEOUT = 10.0


def card_from_wire(data: dict) -> Card:
    if not isinstance(data, dict):
        raise ValueError("card is not an object")
    card_id = data.get("id", data.get("_id"))
    if card_id is None:
        raise ValueError("card without id")
    return Card(
        id=str(card_id),
        question=str(data.get("question", "")),
        answer=str(data.get("answer", "")),
        image=data.get("image") or None,
    )


def deck_from_wire(payload: dict) -> Deck:
    """Decode {"deck": {...}}; the older {"flashcard": {"_id": ...}} shape is accepted too."""
    if not isinstance(payload, dict):
        raise ValueError("response is not an object")
    data = payload.get("deck") or payload.get("flashcard")
    if not isinstance(data, dict):
        raise ValueError("response holds no deck")
    deck_id = data.get("id", data.get("_id"))
    if deck_id is None:
        raise ValueError("deck without id")
    cards = data.get("cards") or []
    if not isinstance(cards, list):
        raise ValueError("deck cards is not a list")
    return Deck(
        id=str(deck_id),
        title=str(data.get("title", "")),
        cards=tuple(card_from_wire(c) for c in cards),
    )


class ApiClient:
    def __init__(self, base_url: str, user_id: str | None = None, timeout: float = DEFAULT_TIMEOUT,
                 session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, *parts])

    def _params(self, user_id: str | None) -> dict:
        user_id = user_id or self.user_id
        return {"userId": user_id} if user_id else {}


class HttpDeckSource(ApiClient):
    def load_deck(self, deck_id: str) -> Deck:
        try:
            response = self.session.get(
                self._url("flashcard", deck_id), params=self._params(None), timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DeckLoadError(f"Failed to load deck {deck_id}: {exc}") from exc
        if not response.ok:
            message = f"Failed to load deck ({response.status_code})"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("message"), str):
                message = body["message"]
            raise DeckLoadError(message)
        try:
            return deck_from_wire(response.json())
        except ValueError as exc:
            raise DeckLoadError(f"Malformed deck response: {exc}") from exc


class HttpProgressStore(ApiClient):
    def load(self, deck_id: str, user_id: str) -> dict | None:
        try:
            response = self.session.get(
                self._url("flashcard", deck_id, "progress"),
                params=self._params(user_id), timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProgressStoreError(f"Failed to load progress: {exc}") from exc
        progress = body.get("progress") if isinstance(body, dict) else None
        return progress if isinstance(progress, dict) else None

    def save(self, deck_id: str, user_id: str, partial: dict) -> None:
        try:
            response = self.session.patch(
                self._url("flashcard", deck_id, "progress"),
                params=self._params(user_id), json=partial, timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ProgressStoreError(f"Failed to save progress: {exc}") from exc
