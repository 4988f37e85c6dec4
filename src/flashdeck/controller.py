"""Study session controller.

StudySession owns the current SessionState for one mounted deck. Each user
action runs a pure transition from flashdeck.session, swaps in the new state,
then hands the matching partial progress document to the synchronizer.
"""
from flashdeck import session
from flashdeck.errors import ProgressStoreError
from flashdeck.logging import logger
from flashdeck.models import Direction, Rating
from flashdeck.progress import (
    completion_partial, from_wire, prefs_partial, queue_partial, starred_partial,
)
from flashdeck.session import SessionState, Status
from flashdeck.sync import DEFAULT_DEBOUNCE_MS, ProgressSynchronizer, SavePolicy


class StudySession:
    def __init__(self, deck_source, progress_store, deck_id: str, user_id: str | None = None,
                 debounce_ms: int = DEFAULT_DEBOUNCE_MS, rng=None, synchronizer=None):
        self.deck_source = deck_source
        self.progress_store = progress_store
        self.deck_id = deck_id
        self.user_id = user_id
        self.rng = rng
        self.state = SessionState()
        self.sync = synchronizer or ProgressSynchronizer(progress_store, deck_id, user_id, debounce_ms)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def status(self) -> Status:
        return self.state.status

    def mount(self) -> SessionState:
        """Load the deck, then any saved progress. Deck errors propagate."""
        deck = self.deck_source.load_deck(self.deck_id)
        self.state = session.load_deck(self.state, deck)
        logger.info("deck_loaded", deck_id=deck.id, cards=len(deck.cards))
        if self.user_id:
            self._load_progress()
        return self.state

    def _load_progress(self) -> None:
        try:
            progress = from_wire(self.progress_store.load(self.deck_id, self.user_id))
            if progress is None:
                return
            state = session.apply_progress(self.state, progress)
        except (ProgressStoreError, TypeError, ValueError) as exc:
            # keep the freshly built queue
            logger.warning("progress_load_failed", deck_id=self.deck_id, user_id=self.user_id, error=str(exc))
            return
        self.state = state
        logger.info(
            "progress_applied", deck_id=self.deck_id, queue=len(self.state.queue),
            pos=self.state.pos, status=self.state.status.value,
        )

    def _save_queue(self, **extra) -> None:
        if self.state.deck is None:
            return
        partial = dict(extra)
        if self.state.preferences.track_progress:
            partial.update(queue_partial(self.state.queue, self.state.pos))
        self.sync.save(partial, SavePolicy.IMMEDIATE)

    def _cleared_completion(self, before: SessionState) -> dict:
        if before.completion is not None and self.state.completion is None:
            return completion_partial(None)
        return {}

    def rate(self, rating: Rating) -> SessionState:
        before = self.state
        self.state = session.rate(before, rating)
        if self.state is before:
            return self.state
        if before.status is Status.ACTIVE and self.state.status is Status.COMPLETE:
            self._save_queue(**completion_partial(self.state.completion))
            logger.info(
                "session_complete", deck_id=self.deck_id, cards_studied=self.state.initial_total,
                studied_starred=self.state.preferences.study_starred_only, **self.state.stats.counts(),
            )
        else:
            self._save_queue()
        return self.state

    def navigate(self, direction: Direction) -> SessionState:
        self.state = session.navigate(self.state, direction, rng=self.rng)
        return self.state

    def flip(self) -> SessionState:
        self.state = session.flip(self.state)
        return self.state

    def toggle_star(self, card_id: str | None = None) -> SessionState:
        before = self.state
        self.state = session.toggle_star(before, card_id)
        if self.state is before:
            return self.state
        partial = starred_partial(self.state.starred_ids)
        if self.state.preferences.study_starred_only:
            self._save_queue(**partial, **self._cleared_completion(before))
        else:
            self.sync.save(partial, SavePolicy.IMMEDIATE)
        return self.state

    def set_preference(self, **changes) -> SessionState:
        before = self.state
        self.state = session.set_preference(before, **changes)
        self.sync.save(prefs_partial(self.state.preferences), SavePolicy.DEBOUNCED)
        if self.state.preferences.study_starred_only != before.preferences.study_starred_only:
            self._save_queue(**self._cleared_completion(before))
        return self.state

    def shuffle_now(self) -> SessionState:
        self.state = session.shuffle_now(self.state, rng=self.rng)
        self._save_queue()
        return self.state

    def restart_deck(self) -> SessionState:
        self.state = session.restart_deck(self.state)
        self._save_queue(**completion_partial(None))
        return self.state

    def review_only_hard_again(self) -> SessionState:
        before = self.state
        self.state = session.review_only_hard_again(before)
        self._save_queue(**self._cleared_completion(before))
        return self.state

    def reset_progress(self) -> SessionState:
        before = self.state
        self.state = session.reset_progress(before)
        self._save_queue(**starred_partial(()), **self._cleared_completion(before))
        return self.state

    def close(self) -> None:
        self.sync.close()
