"""Keyboard shortcuts as an input port.

A key source is any iterable of key names. dispatch() applies one key to a
StudySession, so the same bindings drive the terminal UI and the tests.
"""
from typing import Iterable

from flashdeck.models import Direction, Rating

QUIT = "quit"

BINDINGS = {
    "space": "flip",
    " ": "flip",
    "": "flip",
    "f": "flip",
    "left": "prev",
    "p": "prev",
    "right": "next",
    "n": "next",
    "r": "random",
    "1": Rating.AGAIN,
    "2": Rating.HARD,
    "3": Rating.GOOD,
    "4": Rating.EASY,
    "s": "star",
    "x": "shuffle",
    "q": QUIT,
}


def command_for(key: str):
    if key not in (" ", ""):
        key = key.strip().lower()
    return BINDINGS.get(key)


def dispatch(study, key: str):
    """Apply a key to the session. Returns the command run, or None for unbound keys."""
    command = command_for(key)
    if command is None or command == QUIT:
        return command
    if isinstance(command, Rating):
        study.rate(command)
    elif command == "flip":
        study.flip()
    elif command == "prev":
        study.navigate(Direction.PREV)
    elif command == "next":
        study.navigate(Direction.NEXT)
    elif command == "random":
        study.navigate(Direction.RANDOM)
    elif command == "star":
        study.toggle_star()
    elif command == "shuffle":
        study.shuffle_now()
    return command


def run_keys(study, keys: Iterable[str]) -> None:
    """Feed keys until the source runs out or a quit key arrives."""
    for key in keys:
        if dispatch(study, key) == QUIT:
            return
