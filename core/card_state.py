"""
Lexibox – Card scheduling state
================================
The immutable per-card record that flows through the scheduling engine,
plus the constants that bound it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping

from core.dateutils import clamp_finite, parse_timestamp, to_count

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LEITNER = "leitner"
SM2 = "sm2"
ALGORITHMS = (LEITNER, SM2)

QUALITY_HARD = 1
QUALITY_NORMAL = 2
QUALITY_EASY = 3

MIN_BOX, MAX_BOX = 1, 5
MIN_EASE, MAX_EASE = 1.3, 3.0
DEFAULT_EASE = 2.5

# Days until the next review, indexed by box (index 0 unused).
INTERVAL_TABLE = (0, 1, 2, 3, 7, 14)


class InvalidCardError(ValueError):
    """A card record is missing fields or holds non-numeric values."""


def clamp_quality(quality) -> int:
    return int(clamp_finite(quality, QUALITY_HARD, QUALITY_EASY))


def normalize_algorithm(name: str | None) -> str:
    """Return a supported algorithm name; anything unknown means Leitner."""
    if name in ALGORITHMS:
        return name
    log.debug("Unknown algorithm %r, falling back to %s", name, LEITNER)
    return LEITNER


# ---------------------------------------------------------------------------
# CardState
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CardState:
    """Scheduling fields of one flashcard.

    ``next_review_at`` may be ``None`` for rows that were never scheduled;
    such cards are neither due nor overdue.
    """

    card_id: str
    box: int = MIN_BOX
    ease: float = DEFAULT_EASE
    reps: int = 0
    interval: int = 0
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None

    def normalized(self) -> "CardState":
        """Return a copy with every numeric field clamped into its domain."""
        box = int(clamp_finite(self.box, MIN_BOX, MAX_BOX))
        ease = clamp_finite(self.ease, MIN_EASE, MAX_EASE, nan=DEFAULT_EASE)
        reps = to_count(self.reps)
        interval = to_count(self.interval)
        if (box, ease, reps, interval) != (self.box, self.ease, self.reps, self.interval):
            log.debug(
                "Clamped card %s: box=%s ease=%s reps=%s interval=%s",
                self.card_id, self.box, self.ease, self.reps, self.interval,
            )
        return replace(self, box=box, ease=ease, reps=reps, interval=interval)

    @property
    def is_new(self) -> bool:
        return self.reps == 0 and self.last_reviewed_at is None

    @classmethod
    def new(cls, card_id: str, created_at: datetime) -> "CardState":
        """State of a freshly added card: box 1, due right away."""
        return cls(card_id=card_id, next_review_at=parse_timestamp(created_at))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CardState":
        """Build a state from a plain row (e.g. a decoded API payload).

        Shape problems are rejected here, before anything reaches the
        engine. Range problems are not: those are clamped later.
        """
        try:
            card_id = data["id"]
        except KeyError:
            raise InvalidCardError("card record has no 'id'") from None
        if not card_id:
            raise InvalidCardError("card record has an empty 'id'")

        try:
            box = int(data.get("box", MIN_BOX))
            ease = float(data.get("ease", DEFAULT_EASE))
            reps = int(data.get("reps", 0))
            interval = int(data.get("interval", 0))
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidCardError(f"card {card_id!r}: {exc}") from exc

        return cls(
            card_id=str(card_id),
            box=box,
            ease=ease,
            reps=reps,
            interval=interval,
            last_reviewed_at=parse_timestamp(data.get("lastReviewedAt")),
            next_review_at=parse_timestamp(data.get("nextReviewAt")),
        )
