# tests/test_session.py
import random
from dataclasses import replace

import pytest

from flashdeck import session
from flashdeck.models import (
    CompletionSnapshot, Direction, Preferences, ProgressState, Rating, SIDE_DEFINITION,
)
from flashdeck.session import SessionState, Status


def loaded(deck, **changes):
    return session.load_deck(replace(SessionState(), **changes), deck)


def test_new_state_is_loading():
    state = SessionState()
    assert state.status is Status.LOADING
    assert state.current_card is None


def test_scenario_initialize(abc_deck):
    state = loaded(abc_deck)
    assert state.queue == (0, 1, 2)
    assert state.pos == 0
    assert state.current_card.id == "A"
    assert state.status is Status.ACTIVE
    assert state.initial_total == 3


def test_scenario_again(abc_deck):
    state = session.rate(loaded(abc_deck), Rating.AGAIN)
    assert state.queue == (1, 0, 2)
    assert state.pos == 0
    assert state.current_card.id == "B"


def test_scenario_good(abc_deck):
    state = session.rate(loaded(abc_deck), Rating.GOOD)
    assert state.queue == (1, 2, 0)
    assert state.current_card.id == "B"


def test_scenario_easy(abc_deck):
    state = session.rate(loaded(abc_deck), Rating.EASY)
    assert state.queue == (1, 2)
    assert state.current_card.id == "B"


def test_scenario_all_easy_completes(abc_deck):
    state = loaded(abc_deck)
    for _ in range(3):
        state = session.rate(state, Rating.EASY)
    assert state.queue == ()
    assert state.status is Status.COMPLETE
    assert state.stats.easy == 3
    assert len(state.stats.easy_ids) == 3
    assert state.completion is not None
    assert state.completion.initial_total == 3


def test_scenario_starred_only_filter(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"B"}))
    state = session.set_study_starred_only(state, True)
    assert state.queue == (1,)
    assert state.pos == 0


def test_rate_on_complete_is_noop(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset(), preferences=Preferences(study_starred_only=True))
    assert state.status is Status.COMPLETE
    assert session.rate(state, Rating.GOOD) is state


def test_completion_iff_empty_queue(big_deck):
    rng = random.Random(11)
    state = loaded(big_deck)
    for _ in range(200):
        action = rng.choice(["rate", "nav", "shuffle"])
        if action == "rate":
            state = session.rate(state, rng.choice(list(Rating)))
        elif action == "nav":
            state = session.navigate(state, rng.choice(list(Direction)), rng=rng)
        else:
            state = session.shuffle_now(state, rng=rng)
        assert 0 <= state.pos <= max(len(state.queue) - 1, 0)
        assert (state.status is Status.COMPLETE) == (len(state.queue) == 0)


def test_navigate_resets_flip(abc_deck):
    state = session.flip(loaded(abc_deck))
    assert state.showing_answer
    state = session.navigate(state, Direction.NEXT)
    assert state.pos == 1
    assert not state.showing_answer


def test_navigate_on_empty_queue_is_noop(abc_deck):
    state = replace(loaded(abc_deck), queue=())
    assert session.navigate(state, Direction.RANDOM) is state


def test_flip_toggles(abc_deck):
    state = loaded(abc_deck)
    assert session.flip(session.flip(state)).showing_answer is False


def test_visible_faces_term_first(abc_deck):
    state = loaded(abc_deck)
    assert session.visible_faces(state) == ("question",)
    assert session.visible_faces(session.flip(state)) == ("answer",)


def test_visible_faces_definition_first(abc_deck):
    state = session.set_preference(loaded(abc_deck), side_preference=SIDE_DEFINITION)
    assert session.visible_faces(state) == ("answer",)
    assert session.visible_faces(session.flip(state)) == ("question",)


def test_visible_faces_both_sides(abc_deck):
    state = session.set_preference(loaded(abc_deck), show_both_sides=True)
    assert session.visible_faces(state) == ("question", "answer")


def test_set_preference_rejects_unknown(abc_deck):
    with pytest.raises(TypeError):
        session.set_preference(loaded(abc_deck), colour="red")


def test_shuffle_preference_does_not_reorder(abc_deck):
    state = session.set_preference(loaded(abc_deck), shuffle=True)
    assert state.queue == (0, 1, 2)


def test_shuffle_now_permutes_pending_cards(big_deck):
    state = session.rate(loaded(big_deck), Rating.EASY)
    state = session.navigate(state, Direction.NEXT)
    shuffled = session.shuffle_now(state, rng=random.Random(5))
    assert sorted(shuffled.queue) == sorted(state.queue)
    assert shuffled.pos == 0


def test_toggle_star_current_card(abc_deck):
    state = session.toggle_star(loaded(abc_deck))
    assert state.starred_ids == {"A"}
    assert state.queue == (0, 1, 2)


def test_toggle_star_rebuilds_under_filter(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"A", "C"}))
    state = session.set_study_starred_only(state, True)
    state = session.navigate(state, Direction.NEXT)
    state = session.toggle_star(state, "B")
    assert state.queue == (0, 1, 2)
    assert state.pos == 0


def test_unstarring_last_filtered_card_completes(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"B"}))
    state = session.set_study_starred_only(state, True)
    state = session.toggle_star(state)
    assert state.queue == ()
    assert state.status is Status.COMPLETE


def test_turning_filter_off_restores_full_queue(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"B"}))
    state = session.set_study_starred_only(state, True)
    state = session.set_study_starred_only(state, False)
    assert state.queue == (0, 1, 2)


def test_restart_deck_resets_everything(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"B"}))
    state = session.set_study_starred_only(state, True)
    state = session.rate(state, Rating.EASY)
    assert state.status is Status.COMPLETE
    state = session.restart_deck(state)
    assert state.queue == (0, 1, 2)
    assert state.pos == 0
    assert state.stats.total == 0
    assert not state.stats.easy_ids
    assert state.completion is None
    assert state.status is Status.ACTIVE


def test_review_only_hard_again(abc_deck):
    state = loaded(abc_deck)
    state = session.rate(state, Rating.HARD)   # A -> [1, 2, 0]
    state = session.rate(state, Rating.AGAIN)  # B -> [2, 1, 0]
    for _ in range(3):
        state = session.rate(state, Rating.EASY)
    assert state.status is Status.COMPLETE
    state = session.review_only_hard_again(state)
    assert state.queue == (0, 1)
    assert state.pos == 0
    assert state.status is Status.ACTIVE
    assert state.stats.total == 5
    assert state.completion is None


def test_review_only_hard_again_with_nothing_difficult(abc_deck):
    state = loaded(abc_deck)
    for _ in range(3):
        state = session.rate(state, Rating.EASY)
    state = session.review_only_hard_again(state)
    assert state.status is Status.COMPLETE
    assert state.completion is not None


def test_initialize_on_load_suppressed_after_progress(abc_deck):
    state = session.apply_progress(SessionState(), ProgressState(starred_ids=["C"]))
    state = session.load_deck(state, abc_deck)
    assert state.progress_applied
    assert state.queue == ()


def test_apply_progress_restores_queue_and_pointer(abc_deck):
    state = loaded(abc_deck)
    progress = ProgressState(
        starred_ids=["B"], preferences=Preferences(show_both_sides=True),
        session_queue=[2, 0], viewer_pos=1,
    )
    state = session.apply_progress(state, progress)
    assert state.queue == (2, 0)
    assert state.pos == 1
    assert state.starred_ids == {"B"}
    assert state.preferences.show_both_sides
    assert state.progress_applied


def test_apply_progress_sanitizes_queue(abc_deck):
    state = session.apply_progress(
        loaded(abc_deck), ProgressState(session_queue=[1, 1, 9, 0], viewer_pos=10),
    )
    assert state.queue == (1, 0)
    assert state.pos == 1


def test_apply_progress_empty_queue_without_completion_keeps_fresh(abc_deck):
    state = session.apply_progress(loaded(abc_deck), ProgressState(session_queue=[], viewer_pos=0))
    assert state.queue == (0, 1, 2)


def test_apply_progress_restores_completion(abc_deck):
    completion = CompletionSnapshot(
        initial_total=3, counts={"again": 1, "hard": 0, "good": 0, "easy": 3, "total": 4},
        again_ids=("A",), easy_ids=("A", "B", "C"),
    )
    state = session.apply_progress(
        loaded(abc_deck), ProgressState(session_queue=[], viewer_pos=0, completion=completion),
    )
    assert state.status is Status.COMPLETE
    assert state.stats.total == 4
    assert state.stats.again_ids == {"A"}
    state = session.review_only_hard_again(state)
    assert state.queue == (0,)


def test_reset_progress_clears_stars(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"A"}))
    state = session.set_study_starred_only(state, True)
    state = session.reset_progress(state)
    assert state.starred_ids == frozenset()
    assert state.queue == ()
    assert state.progress_applied


def test_progress_percent(abc_deck):
    state = session.rate(loaded(abc_deck), Rating.EASY)
    assert session.progress_percent(state) == 33


def test_filter_rebuild_after_completion_ends_it(abc_deck):
    state = loaded(abc_deck, starred_ids=frozenset({"B"}))
    for _ in range(3):
        state = session.rate(state, Rating.EASY)
    assert state.completion is not None
    state = session.set_study_starred_only(state, True)
    assert state.queue == (1,)
    assert state.status is Status.ACTIVE
    assert state.completion is None
    assert state.stats.easy == 3
