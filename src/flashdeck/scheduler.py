"""Session queue engine: builds and reorders the queue of card indices."""
import random
from typing import Iterable, Optional

from flashdeck.models import Deck, Direction, Rating

# Reinsertion offsets relative to the rated card's position.
AGAIN_OFFSET = 1
HARD_OFFSET = 3


def initialize_queue(deck: Deck, starred_ids: Iterable[str] = (), starred_only: bool = False) -> tuple:
    """Return the queue over all deck indices, limited to starred cards if requested.

    Never shuffles; shuffling is only done by shuffle_now().
    """
    indices = range(len(deck.cards))
    if starred_only:
        starred = set(starred_ids)
        return tuple(i for i in indices if deck.cards[i].id in starred)
    return tuple(indices)


def queue_for_card_ids(deck: Deck, card_ids: Iterable[str]) -> tuple:
    """Queue over the deck indices whose card id is in card_ids, in deck order."""
    wanted = set(card_ids)
    return tuple(i for i, card in enumerate(deck.cards) if card.id in wanted)


def clamp_pos(queue, pos: int) -> int:
    return max(0, min(pos, max(len(queue) - 1, 0)))


def rate(queue, pos: int, rating: Rating) -> tuple:
    """Apply a rating to the card at queue[pos].

    Returns (new_queue, new_pos). Rating an empty queue is a no-op.
    """
    if not queue:
        return tuple(queue), 0
    pos = clamp_pos(queue, pos)
    rest = list(queue)
    index = rest.pop(pos)
    rating = Rating(rating)
    if rating is Rating.AGAIN:
        rest.insert(min(pos + AGAIN_OFFSET, len(rest)), index)
    elif rating is Rating.HARD:
        rest.insert(min(pos + HARD_OFFSET, len(rest)), index)
    elif rating is Rating.GOOD:
        rest.append(index)
    # EASY: mastered, not reinserted
    return tuple(rest), clamp_pos(rest, pos)


def navigate(queue, pos: int, direction: Direction, rng: Optional[random.Random] = None) -> int:
    if not queue:
        return 0
    direction = Direction(direction)
    if direction is Direction.PREV:
        return max(pos - 1, 0)
    if direction is Direction.NEXT:
        return min(pos + 1, len(queue) - 1)
    return (rng or random).randrange(len(queue))


def shuffle_now(queue, rng: Optional[random.Random] = None) -> tuple:
    """Fisher-Yates shuffle of the queue contents."""
    rng = rng or random
    out = list(queue)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randrange(i + 1)
        out[i], out[j] = out[j], out[i]
    return tuple(out)


def sanitize_queue(queue: Iterable, deck_size: int) -> tuple:
    """Drop out-of-range and duplicate indices from a persisted queue."""
    seen = set()
    out = []
    for value in queue:
        if isinstance(value, bool) or not isinstance(value, int):
            continue
        if 0 <= value < deck_size and value not in seen:
            seen.add(value)
            out.append(value)
    return tuple(out)
