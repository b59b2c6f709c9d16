"""
Lexibox – Study session
========================
Walks through today's queue one card at a time. Answers are handed to a
caller-supplied ``record`` callback (normally ``review_service.record_review``
bound to a DB session); "Again" only reorders the in-memory queue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from core.again_queue import DEFAULT_GAP_SEQUENCE, AgainSession
from core.card_state import CardState, clamp_quality

log = logging.getLogger(__name__)

# Persists one answer; its return value is passed back by ``answer``.
RecordFn = Callable[[str, int, datetime], Any]


# ── Daily counters ───────────────────────────────────────────────────
@dataclass
class DailyReviewStats:
    reviewed_count: int = 0
    new_cards_count: int = 0
    again_used_count: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.ended_at is None:
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()


# ── Session ──────────────────────────────────────────────────────────
class StudySession:
    """One pass over a queue of cards.

    ``position`` always points at the card being shown. Answering moves
    past it; pressing Again moves past it too, after a copy has been
    re-queued further on.
    """

    def __init__(
        self,
        cards: Iterable[CardState],
        record: RecordFn,
        *,
        gap_sequence: Sequence[int] = DEFAULT_GAP_SEQUENCE,
        stats: Optional[DailyReviewStats] = None,
    ):
        self._again = AgainSession(queue=list(cards), gap_sequence=tuple(gap_sequence))
        self._record = record
        self._answered: set[str] = set()
        self.position = 0
        self.stats = stats or DailyReviewStats()

    # -- queue access -------------------------------------------------
    @property
    def queue(self) -> list:
        return list(self._again.queue)

    @property
    def finished(self) -> bool:
        return self.position >= len(self._again.queue)

    @property
    def remaining(self) -> int:
        return max(0, len(self._again.queue) - self.position)

    def current(self) -> CardState | None:
        if self.finished:
            return None
        return self._again.queue[self.position]

    def again_count(self, card_id: str) -> int:
        return self._again.again_count(card_id)

    # -- actions ------------------------------------------------------
    def _start(self, now: datetime) -> None:
        if self.stats.started_at is None:
            self.stats.started_at = now

    def answer(self, quality: int, now: datetime):
        """Record *quality* for the current card and move on.

        Returns what the record callback returned, or ``None`` when the
        session is over.
        """
        card = self.current()
        if card is None:
            return None
        self._start(now)

        result = self._record(card.card_id, clamp_quality(quality), now)
        if card.card_id not in self._answered:
            self._answered.add(card.card_id)
            self.stats.reviewed_count += 1
            if card.is_new:
                self.stats.new_cards_count += 1
        self.position += 1
        if self.finished:
            self.finish(now)
        return result

    def again(self, now: datetime) -> int | None:
        """Show the current card again later; return its new queue index."""
        card = self.current()
        if card is None:
            return None
        self._start(now)

        index = self._again.again(card, self.position)
        self.stats.again_used_count += 1
        self.position += 1
        return index

    def finish(self, now: datetime) -> DailyReviewStats:
        self.stats.ended_at = now
        log.info(
            "Session done: %d reviewed (%d new), %d agains",
            self.stats.reviewed_count, self.stats.new_cards_count,
            self.stats.again_used_count,
        )
        return self.stats
