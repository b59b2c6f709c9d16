"""
Lexibox – Review persistence
=============================
Glue between the stored ``Card`` rows and the pure scheduling engine:
loads candidates, plans the day, and records reviews.

Callers own the session. ``record_review`` does its read-modify-write
inside a single transaction, so two reviews of the same card must not
share a session concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from core.card_state import (
    QUALITY_EASY,
    QUALITY_HARD,
    CardState,
    clamp_quality,
    normalize_algorithm,
)
from core.config import DEFAULT_CONFIG, AppConfig
from core.daily_selection import SelectionResult, interleave_new_cards, select_today
from core.dateutils import as_utc
from core.srs_engine import (
    ReviewProgress,
    calculate_stats,
    compute_next_review_state,
    predict_interval,
)
from db.models import Card, ReviewLog

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Adding cards
# ---------------------------------------------------------------------------

def add_card(
    session: Session,
    word: str,
    meaning: str,
    now: datetime,
    *,
    phonetic: str | None = None,
    part_of_speech: str | None = None,
    example: str | None = None,
) -> Card:
    """Store a new card in box 1, due straight away.

    Raises ``ValueError`` for a blank word.
    """
    word = (word or "").strip()
    if not word:
        raise ValueError("word must not be empty")

    now = as_utc(now)
    card = Card(
        word=word,
        meaning=(meaning or "").strip(),
        phonetic=phonetic,
        part_of_speech=part_of_speech,
        example=example,
        created_at=now,
    )
    session.add(card)
    session.flush()
    card.apply_state(CardState.new(card.id, now))
    session.commit()

    log.info("Added card %s (%r)", card.id, card.word)
    return card


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def get_due_cards(session: Session, now: datetime, *, limit: int = 50) -> List[Card]:
    """Return cards whose next_review_at is <= *now*, most overdue first."""
    # Stored timestamps are UTC without an offset.
    now = as_utc(now)
    cards = (
        session.query(Card)
        .filter(Card.next_review_at.isnot(None), Card.next_review_at <= now)
        .order_by(Card.next_review_at.asc(), Card.id.asc())
        .limit(limit)
        .all()
    )
    log.info("Found %d due cards", len(cards))
    return cards


def load_candidates(session: Session) -> List[CardState]:
    """Return every stored card as a ``CardState``."""
    return [c.to_state() for c in session.query(Card).order_by(Card.id).all()]


# ---------------------------------------------------------------------------
# Daily plan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DailyPlan:
    selection: SelectionResult
    new_cards: Tuple[CardState, ...] = ()

    def queue(self) -> List[CardState]:
        """Today's study order: reviews with the new cards spread through."""
        return interleave_new_cards(self.selection.due_picked, self.new_cards)


def plan_today(session: Session, now: datetime, config: AppConfig = DEFAULT_CONFIG) -> DailyPlan:
    """Select today's reviews and top them up with never-seen cards.

    Reviewed cards compete for the daily cap through ``select_today``;
    new cards are then taken oldest first, up to ``may_new``.
    """
    states = load_candidates(session)
    reviewed = [s for s in states if not s.is_new]
    selection = select_today(reviewed, now, config.daily_selection())

    new_ids = [
        row.id
        for row in (
            session.query(Card.id, Card.created_at)
            .filter(Card.reps == 0, Card.last_reviewed_at.is_(None))
            .order_by(Card.created_at.asc(), Card.id.asc())
            .limit(selection.may_new)
            .all()
        )
    ]
    by_id = {s.card_id: s for s in states}
    new_cards = tuple(by_id[i] for i in new_ids)

    if len(new_cards) < selection.need_new:
        log.info(
            "Only %d new cards available, %d wanted; add more words",
            len(new_cards), selection.need_new,
        )
    log.info(
        "Planned %d reviews + %d new cards for %s",
        len(selection.due_picked), len(new_cards), now.date(),
    )
    return DailyPlan(selection=selection, new_cards=new_cards)


# ---------------------------------------------------------------------------
# Review recording
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReviewOutcome:
    state: CardState
    previews: Dict[int, int]


def preview_intervals(state: CardState, algorithm: str | None) -> Dict[int, int]:
    """Return ``{quality: days}`` for every answer button."""
    return {
        q: predict_interval(state, q, algorithm)
        for q in range(QUALITY_HARD, QUALITY_EASY + 1)
    }


def record_review(
    session: Session,
    card_id: str,
    quality: int,
    algorithm: str | None,
    now: datetime,
) -> ReviewOutcome:
    """Score a card, persist its new schedule and log the review.

    Returns the new state together with the intervals each answer would
    give on the next review. Raises ``LookupError`` if *card_id* is not
    stored.
    """
    card = session.get(Card, card_id)
    if card is None:
        raise LookupError(f"card {card_id!r} not found")

    algorithm = normalize_algorithm(algorithm)
    quality = clamp_quality(quality)
    new_state = compute_next_review_state(card.to_state(), quality, algorithm, now)
    card.apply_state(new_state)

    session.add(ReviewLog(
        card_id=card.id,
        reviewed_at=new_state.last_reviewed_at,
        quality=quality,
        algorithm=algorithm,
        box_after=new_state.box,
        ease_after=new_state.ease,
        interval_after=new_state.interval,
    ))
    session.commit()

    log.info(
        "Reviewed card %s (q=%d, %s) → box=%d ease=%.2f interval=%d next=%s",
        card.id, quality, algorithm, new_state.box, new_state.ease,
        new_state.interval, new_state.next_review_at,
    )
    return ReviewOutcome(state=new_state, previews=preview_intervals(new_state, algorithm))


# ---------------------------------------------------------------------------
# Statistics & maintenance
# ---------------------------------------------------------------------------

def deck_stats(session: Session, now: datetime) -> ReviewProgress:
    """Return progress figures over every stored card."""
    return calculate_stats(load_candidates(session), now)


def reset_progress(session: Session, now: datetime) -> int:
    """Put every card back to its initial schedule and drop the review log.

    Returns the number of cards reset.
    """
    cards = session.query(Card).all()
    for c in cards:
        c.apply_state(CardState.new(c.id, now))
    session.query(ReviewLog).delete(synchronize_session="fetch")
    session.commit()
    log.info("Reset progress for %d cards", len(cards))
    return len(cards)
