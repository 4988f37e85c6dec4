"""Study session state and its pure transitions.

Every transition takes a SessionState and returns a new one; nothing here
performs I/O. Persistence of the results is the controller's job.
"""
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from flashdeck import scheduler
from flashdeck import stats as session_stats
from flashdeck.models import (
    Card, CompletionSnapshot, Deck, Direction, Preferences, ProgressState,
    Rating, RatingEvent, SIDE_DEFINITION,
)
from flashdeck.starred import toggle_star as toggled


class Status(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionState:
    deck: Optional[Deck] = None
    queue: tuple = ()
    pos: int = 0
    starred_ids: frozenset = field(default_factory=frozenset)
    preferences: Preferences = field(default_factory=Preferences)
    stats: session_stats.SessionStats = field(default_factory=session_stats.SessionStats)
    showing_answer: bool = False
    initial_total: int = 0
    progress_applied: bool = False
    completion: Optional[CompletionSnapshot] = None

    @property
    def status(self) -> Status:
        if self.deck is None:
            return Status.LOADING
        if not self.queue:
            return Status.COMPLETE
        return Status.ACTIVE

    @property
    def current_card(self) -> Optional[Card]:
        if self.deck is None or not self.queue:
            return None
        return self.deck.cards[self.queue[self.pos]]


def _rebuilt(state: SessionState, queue) -> SessionState:
    queue = tuple(queue)
    changes = {"queue": queue, "pos": 0, "showing_answer": False}
    # cards to study again means the completed session is over
    if queue:
        changes["completion"] = None
    return replace(state, **changes)


def _filtered_queue(state: SessionState) -> tuple:
    return scheduler.initialize_queue(
        state.deck, state.starred_ids, state.preferences.study_starred_only,
    )


def load_deck(state: SessionState, deck: Deck) -> SessionState:
    state = replace(state, deck=deck, initial_total=len(deck.cards))
    return initialize_on_load(state)


def initialize_on_load(state: SessionState) -> SessionState:
    """Build the queue for a freshly loaded deck unless saved progress was applied."""
    if state.deck is None or state.progress_applied:
        return state
    return _rebuilt(state, _filtered_queue(state))


def apply_progress(state: SessionState, progress: ProgressState) -> SessionState:
    """Overwrite local state from a persisted snapshot."""
    changes = {"progress_applied": True}
    if progress.starred_ids is not None:
        changes["starred_ids"] = frozenset(progress.starred_ids)
    if progress.preferences is not None:
        changes["preferences"] = progress.preferences
    if progress.completion is not None:
        changes["completion"] = progress.completion
        changes["stats"] = session_stats.from_snapshot(progress.completion)
        if progress.completion.initial_total:
            changes["initial_total"] = progress.completion.initial_total
    state = replace(state, **changes)
    if state.deck is None:
        return state

    # An empty saved queue only means something once the session was completed.
    if progress.session_queue is not None and (progress.session_queue or progress.completion):
        queue = scheduler.sanitize_queue(progress.session_queue, len(state.deck.cards))
        state = replace(state, queue=queue, pos=0, showing_answer=False)
    elif "starred_ids" in changes or "preferences" in changes:
        state = _rebuilt(state, _filtered_queue(state))
    if progress.viewer_pos is not None:
        state = replace(state, pos=scheduler.clamp_pos(state.queue, progress.viewer_pos))
    return state


def rate(state: SessionState, rating: Rating, at: Optional[datetime] = None) -> SessionState:
    card = state.current_card
    if card is None:
        return state
    event = RatingEvent(card_id=card.id, rating=Rating(rating), timestamp=at or datetime.now())
    queue, pos = scheduler.rate(state.queue, state.pos, event.rating)
    new_stats = session_stats.record_rating(state.stats, event)
    completion = state.completion
    if not queue:
        completion = session_stats.snapshot(new_stats, state.initial_total or len(state.deck.cards))
    return replace(
        state, queue=queue, pos=pos, stats=new_stats,
        showing_answer=False, completion=completion,
    )


def navigate(state: SessionState, direction: Direction, rng=None) -> SessionState:
    if not state.queue:
        return state
    pos = scheduler.navigate(state.queue, state.pos, direction, rng=rng)
    return replace(state, pos=pos, showing_answer=False)


def flip(state: SessionState) -> SessionState:
    if state.current_card is None:
        return state
    return replace(state, showing_answer=not state.showing_answer)


def toggle_star(state: SessionState, card_id: Optional[str] = None) -> SessionState:
    """Star or unstar a card (the current one by default).

    With the starred-only filter on, the queue is rebuilt straight away.
    """
    if card_id is None:
        card = state.current_card
        if card is None:
            return state
        card_id = card.id
    state = replace(state, starred_ids=toggled(state.starred_ids, card_id))
    if state.deck is not None and state.preferences.study_starred_only:
        state = _rebuilt(state, _filtered_queue(state))
    return state


def set_preference(state: SessionState, **changes) -> SessionState:
    known = {f.name for f in fields(Preferences)}
    unknown = set(changes) - known
    if unknown:
        raise TypeError(f"Unknown preference(s): {', '.join(sorted(unknown))}")
    before = state.preferences
    state = replace(state, preferences=replace(before, **changes))
    if (
        state.deck is not None
        and state.preferences.study_starred_only != before.study_starred_only
    ):
        state = _rebuilt(state, _filtered_queue(state))
    return state


def set_study_starred_only(state: SessionState, enabled: bool) -> SessionState:
    return set_preference(state, study_starred_only=enabled)


def shuffle_now(state: SessionState, rng=None) -> SessionState:
    """Shuffle the pending cards and restart from the top.

    The starred filter is applied to the pending set before shuffling.
    """
    if state.deck is None:
        return state
    queue = state.queue
    if state.preferences.study_starred_only:
        queue = tuple(i for i in queue if state.deck.cards[i].id in state.starred_ids)
    return _rebuilt(state, scheduler.shuffle_now(queue, rng=rng))


def restart_deck(state: SessionState) -> SessionState:
    """Full reset: every card back in deck order, stats cleared."""
    if state.deck is None:
        return state
    state = replace(
        state, stats=session_stats.SessionStats(), completion=None,
        initial_total=len(state.deck.cards),
    )
    return _rebuilt(state, scheduler.initialize_queue(state.deck))


def review_only_hard_again(state: SessionState) -> SessionState:
    """Requeue the cards rated again or hard. Stats carry over."""
    if state.deck is None:
        return state
    queue = scheduler.queue_for_card_ids(state.deck, session_stats.difficult_ids(state.stats))
    return _rebuilt(state, queue)


def reset_progress(state: SessionState) -> SessionState:
    """Clear stars and rebuild the queue under the current filter."""
    state = replace(state, starred_ids=frozenset(), progress_applied=True)
    if state.deck is None:
        return state
    return _rebuilt(state, _filtered_queue(state))


def progress_percent(state: SessionState) -> int:
    return session_stats.progress_percent(state.initial_total, len(state.queue))


def visible_faces(state: SessionState) -> tuple:
    """Which card faces to render, in order: 'question' and/or 'answer'."""
    if state.current_card is None:
        return ()
    if state.preferences.show_both_sides:
        return ("question", "answer")
    front, back = "question", "answer"
    if state.preferences.side_preference == SIDE_DEFINITION:
        front, back = back, front
    return (back,) if state.showing_answer else (front,)
