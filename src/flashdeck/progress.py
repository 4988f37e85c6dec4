"""ProgressState wire format.

The remote store keeps one JSON document per (user, deck). Keys are the
camelCase names the web client has always used.
"""
from typing import Optional

from flashdeck.models import (
    CompletionSnapshot, Preferences, ProgressState, SIDE_DEFINITION, SIDE_TERM,
)

PREF_KEYS = {
    "track_progress": "trackProgress",
    "shuffle": "shuffle",
    "study_starred_only": "studyStarredOnly",
    "side_preference": "sidePreference",
    "show_both_sides": "showBothSides",
}

PROGRESS_KEYS = ("starredIds", "prefs", "sessionQueue", "viewerPos", "completion")

COUNT_KEYS = ("again", "hard", "good", "easy", "total")


def prefs_to_wire(prefs: Preferences) -> dict:
    return {wire: getattr(prefs, attr) for attr, wire in PREF_KEYS.items()}


def prefs_from_wire(data: dict) -> Preferences:
    defaults = Preferences()
    values = {}
    for attr, wire in PREF_KEYS.items():
        default = getattr(defaults, attr)
        if wire not in data or data[wire] is None:
            values[attr] = default
        elif attr == "side_preference":
            side = data[wire]
            values[attr] = side if side in (SIDE_TERM, SIDE_DEFINITION) else default
        else:
            values[attr] = bool(data[wire])
    return Preferences(**values)


def completion_to_wire(completion: Optional[CompletionSnapshot]) -> Optional[dict]:
    if completion is None:
        return None
    return {
        "showCompletion": True,
        "initialTotal": completion.initial_total,
        "ratingCounts": dict(completion.counts),
        "againIds": list(completion.again_ids),
        "hardIds": list(completion.hard_ids),
        "easyIds": list(completion.easy_ids),
        "completedAt": completion.completed_at,
    }


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _counts_from_wire(data) -> dict:
    """Keep the known counters that hold non-negative ints."""
    if not isinstance(data, dict):
        return {}
    return {
        key: data[key] for key in COUNT_KEYS
        if _is_int(data.get(key)) and data[key] >= 0
    }


def _ids_from_wire(data) -> tuple:
    if not isinstance(data, list):
        return ()
    return tuple(str(card_id) for card_id in data if isinstance(card_id, (str, int)))


def completion_from_wire(data) -> Optional[CompletionSnapshot]:
    if not isinstance(data, dict) or not data.get("showCompletion", True):
        return None
    total = data.get("initialTotal")
    completed_at = data.get("completedAt")
    return CompletionSnapshot(
        initial_total=total if _is_int(total) and total > 0 else 0,
        counts=_counts_from_wire(data.get("ratingCounts")),
        again_ids=_ids_from_wire(data.get("againIds")),
        hard_ids=_ids_from_wire(data.get("hardIds")),
        easy_ids=_ids_from_wire(data.get("easyIds")),
        completed_at=completed_at if isinstance(completed_at, str) else None,
    )


def queue_partial(queue, pos: int) -> dict:
    return {"sessionQueue": list(queue), "viewerPos": pos}


def starred_partial(starred_ids) -> dict:
    return {"starredIds": sorted(starred_ids)}


def prefs_partial(prefs: Preferences) -> dict:
    return {"prefs": prefs_to_wire(prefs)}


def completion_partial(completion: Optional[CompletionSnapshot]) -> dict:
    return {"completion": completion_to_wire(completion)}


def from_wire(data: Optional[dict]) -> Optional[ProgressState]:
    """Decode a stored progress document. Returns None for an empty document."""
    if not isinstance(data, dict):
        return None
    # Older documents nest starred ids and prefs under "flashcards".
    nested = data.get("flashcards") if isinstance(data.get("flashcards"), dict) else {}

    starred = data.get("starredIds", nested.get("starredIds"))
    prefs = data.get("prefs", nested.get("prefs"))
    queue = data.get("sessionQueue")
    pos = data.get("viewerPos")

    state = ProgressState(
        starred_ids=[str(s) for s in starred] if isinstance(starred, list) else None,
        preferences=prefs_from_wire(prefs) if isinstance(prefs, dict) else None,
        session_queue=list(queue) if isinstance(queue, list) else None,
        viewer_pos=pos if _is_int(pos) else None,
        completion=completion_from_wire(data.get("completion")),
    )
    if state == ProgressState():
        return None
    return state


def merge_progress(existing: Optional[dict], partial: dict) -> dict:
    """Upsert semantics of the progress store: provided top-level keys replace."""
    merged = dict(existing or {})
    for key in PROGRESS_KEYS:
        if key in partial:
            merged[key] = partial[key]
    return merged
