"""In-session rating statistics and completion summary numbers."""
from dataclasses import dataclass, field, replace
from datetime import datetime

from flashdeck.models import CompletionSnapshot, Rating, RatingEvent


@dataclass(frozen=True)
class SessionStats:
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0
    total: int = 0
    again_ids: frozenset = field(default_factory=frozenset)
    hard_ids: frozenset = field(default_factory=frozenset)
    easy_ids: frozenset = field(default_factory=frozenset)

    def counts(self) -> dict:
        return {
            "again": self.again, "hard": self.hard, "good": self.good,
            "easy": self.easy, "total": self.total,
        }


def record_rating(stats: SessionStats, event: RatingEvent) -> SessionStats:
    """Count one review. Counters count reviews, id-sets count cards."""
    rating, card_id = Rating(event.rating), event.card_id
    changes = {
        rating.value: getattr(stats, rating.value) + 1,
        "total": stats.total + 1,
    }
    if rating is Rating.AGAIN:
        changes["again_ids"] = stats.again_ids | {card_id}
    elif rating is Rating.HARD:
        changes["hard_ids"] = stats.hard_ids | {card_id}
    elif rating is Rating.EASY:
        changes["easy_ids"] = stats.easy_ids | {card_id}
    return replace(stats, **changes)


def mastered(stats: SessionStats) -> int:
    return len(stats.easy_ids)


def still_learning(stats: SessionStats, total_cards: int) -> int:
    return max(0, total_cards - mastered(stats))


def difficult_ids(stats: SessionStats) -> frozenset:
    return stats.again_ids | stats.hard_ids


def progress_percent(initial_total: int, remaining: int) -> int:
    learned = max(0, initial_total - remaining)
    return round(learned / max(initial_total, 1) * 100)


def snapshot(stats: SessionStats, initial_total: int) -> CompletionSnapshot:
    return CompletionSnapshot(
        initial_total=initial_total,
        counts=stats.counts(),
        again_ids=tuple(sorted(stats.again_ids)),
        hard_ids=tuple(sorted(stats.hard_ids)),
        easy_ids=tuple(sorted(stats.easy_ids)),
        completed_at=datetime.now().isoformat(),
    )


def from_snapshot(completion: CompletionSnapshot) -> SessionStats:
    counts = completion.counts or {}
    return SessionStats(
        again=int(counts.get("again", 0)),
        hard=int(counts.get("hard", 0)),
        good=int(counts.get("good", 0)),
        easy=int(counts.get("easy", 0)),
        total=int(counts.get("total", 0)),
        again_ids=frozenset(completion.again_ids),
        hard_ids=frozenset(completion.hard_ids),
        easy_ids=frozenset(completion.easy_ids),
    )
