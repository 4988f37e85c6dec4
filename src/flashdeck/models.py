"""Data classes for the study session domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Rating(str, Enum):
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


class Direction(str, Enum):
    PREV = "prev"
    NEXT = "next"
    RANDOM = "random"


SIDE_TERM = "term"
SIDE_DEFINITION = "definition"


@dataclass(frozen=True)
class Card:
    id: str
    question: str
    answer: str
    image: Optional[str] = None


@dataclass(frozen=True)
class Deck:
    id: str
    title: str
    cards: tuple = ()


@dataclass(frozen=True)
class Preferences:
    track_progress: bool = True
    shuffle: bool = False
    study_starred_only: bool = False
    side_preference: str = SIDE_TERM
    show_both_sides: bool = False


@dataclass(frozen=True)
class RatingEvent:
    card_id: str
    rating: Rating
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class CompletionSnapshot:
    """Summary persisted when a session empties its queue."""
    initial_total: int
    counts: dict
    again_ids: tuple = ()
    hard_ids: tuple = ()
    easy_ids: tuple = ()
    completed_at: Optional[str] = None


@dataclass
class ProgressState:
    """Externally persisted snapshot. Fields left as None were not provided."""
    starred_ids: Optional[list] = None
    preferences: Optional[Preferences] = None
    session_queue: Optional[list] = None
    viewer_pos: Optional[int] = None
    completion: Optional[CompletionSnapshot] = None
