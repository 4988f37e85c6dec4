"""Starred card set."""


def toggle_star(starred_ids: frozenset, card_id: str) -> frozenset:
    """Add card_id if absent, remove it if present."""
    if card_id in starred_ids:
        return starred_ids - {card_id}
    return starred_ids | {card_id}


def starred_in_deck_order(deck, starred_ids) -> list:
    """Starred ids ordered the way the deck lists the cards."""
    return [card.id for card in deck.cards if card.id in starred_ids]
