"""
Lexibox – Review priority score
================================
Ranks due cards by a weighted mix of difficulty, overdueness and box level.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.card_state import MAX_BOX, MIN_BOX, CardState
from core.dateutils import clamp, parse_timestamp, whole_days_between

OVERDUE_CAP_DAYS = 7
MAX_DIFFICULTY = 2.0


@dataclass(frozen=True)
class PriorityWeights:
    """Relative weight of each score component. They need not sum to 1."""

    ease: float = 0.5
    overdue_days: float = 0.3
    box: float = 0.2


def difficulty(ease: float) -> float:
    """0 for the easiest cards (ease >= 3.0) up to 2 for the hardest."""
    return clamp(3.0 - ease, 0.0, MAX_DIFFICULTY)


def overdue_days(next_review_at, reference_date: datetime) -> int:
    """Whole days past due; 0 for cards not yet due or without a due date."""
    due = parse_timestamp(next_review_at)
    if due is None:
        return 0
    return max(0, whole_days_between(due, reference_date))


def overdue_normalized(next_review_at, reference_date: datetime) -> float:
    return clamp(overdue_days(next_review_at, reference_date) / OVERDUE_CAP_DAYS, 0.0, 1.0)


def level_normalized(box: int) -> float:
    """1.0 for box 1 down to 0.0 for box 5."""
    box = clamp(box, MIN_BOX, MAX_BOX)
    return (MAX_BOX - box) / (MAX_BOX - MIN_BOX)


def score_priority(card: CardState, reference_date: datetime, weights: PriorityWeights) -> float:
    """Return the urgency of *card* on *reference_date*; higher means sooner."""
    return (
        weights.ease * difficulty(card.ease)
        + weights.overdue_days * overdue_normalized(card.next_review_at, reference_date)
        + weights.box * level_normalized(card.box)
    )
