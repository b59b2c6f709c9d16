"""
Lexibox – Spaced Repetition Engine
===================================
Implements the two scheduling models used by the app, a Leitner box
ladder and an SM-2 style ease-factor model, together with the
non-mutating interval preview and a few list helpers.

Every function here is pure: the review time is always passed in and
the incoming ``CardState`` is never modified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List

from core.card_state import (
    INTERVAL_TABLE,
    MAX_BOX,
    MAX_EASE,
    MIN_BOX,
    MIN_EASE,
    QUALITY_EASY,
    QUALITY_HARD,
    SM2,
    CardState,
    clamp_quality,
    normalize_algorithm,
)
from core.dateutils import add_days, as_utc, parse_timestamp, round_days, round_half_away

log = logging.getLogger(__name__)

EASE_STEP_UP = 0.1
EASE_STEP_DOWN = 0.2
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


# ---------------------------------------------------------------------------
# Leitner box ladder
# ---------------------------------------------------------------------------

def _next_box(box: int, quality: int) -> int:
    if quality == QUALITY_EASY:
        return min(MAX_BOX, box + 1)
    if quality == QUALITY_HARD:
        return MIN_BOX
    return box


def compute_box_ladder(card: CardState, quality: int, now: datetime) -> CardState:
    """Move *card* along the box ladder and schedule its next review.

    Parameters
    ----------
    card : CardState
        Current state; out-of-range fields are clamped first.
    quality : int
        1 = hard (back to box 1), 2 = normal (stay), 3 = easy (up one box).
        Other values are clamped into 1..3.
    now : datetime
        Review time.

    Returns
    -------
    CardState
        New state with ``reps`` incremented whatever the answer.
    """
    card = card.normalized()
    quality = clamp_quality(quality)

    box = _next_box(card.box, quality)
    interval = INTERVAL_TABLE[box]
    now = as_utc(now)
    return replace(
        card,
        box=box,
        reps=card.reps + 1,
        interval=interval,
        last_reviewed_at=now,
        next_review_at=add_days(now, interval),
    )


# ---------------------------------------------------------------------------
# SM-2 style ease factor
# ---------------------------------------------------------------------------

def _ease_factor_step(card: CardState, quality: int):
    """Shared branch logic: return (reps, ease, interval) after *quality*."""
    if quality == QUALITY_HARD:
        ease = max(MIN_EASE, round_half_away(card.ease - EASE_STEP_DOWN, 2))
        return 0, ease, FIRST_INTERVAL

    ease = card.ease
    if quality == QUALITY_EASY:
        ease = min(MAX_EASE, round_half_away(ease + EASE_STEP_UP, 2))

    reps = card.reps + 1
    if reps == 1:
        interval = FIRST_INTERVAL
    elif reps == 2:
        interval = SECOND_INTERVAL
    else:
        interval = round_days(card.interval * ease)
    return reps, ease, interval


def compute_ease_factor(card: CardState, quality: int, now: datetime) -> CardState:
    """Apply the bounded SM-2 variant and schedule the next review.

    Quality 1 resets the streak and lowers ease by 0.2 (floor 1.3);
    quality 3 raises ease by 0.1 (cap 3.0) before the interval is
    stretched. The box is left as it is.

    Every ease change is rounded to two decimals (half away from zero),
    so the third decimal of an incoming ease is lost after any answer
    that changes it.
    """
    card = card.normalized()
    quality = clamp_quality(quality)

    reps, ease, interval = _ease_factor_step(card, quality)
    now = as_utc(now)
    return replace(
        card,
        ease=ease,
        reps=reps,
        interval=interval,
        last_reviewed_at=now,
        next_review_at=add_days(now, interval),
    )


# ---------------------------------------------------------------------------
# Dispatch & preview
# ---------------------------------------------------------------------------

def compute_next_review_state(
    card: CardState,
    quality: int,
    algorithm: str | None,
    now: datetime,
) -> CardState:
    """Return the state *card* would have after being reviewed at *now*."""
    if normalize_algorithm(algorithm) == SM2:
        new_state = compute_ease_factor(card, quality, now)
    else:
        new_state = compute_box_ladder(card, quality, now)
    log.debug(
        "Card %s (q=%s, %s) -> box=%d ease=%.2f reps=%d interval=%d",
        card.card_id, quality, algorithm, new_state.box, new_state.ease,
        new_state.reps, new_state.interval,
    )
    return new_state


def predict_interval(card: CardState, quality: int, algorithm: str | None) -> int:
    """Return the interval in days a review with *quality* would produce.

    Nothing is written and no timestamp is consulted, so the UI may call
    this for every answer button before the user commits.
    """
    card = card.normalized()
    quality = clamp_quality(quality)
    if normalize_algorithm(algorithm) == SM2:
        _, _, interval = _ease_factor_step(card, quality)
        return interval
    return INTERVAL_TABLE[_next_box(card.box, quality)]


# ---------------------------------------------------------------------------
# List helpers
# ---------------------------------------------------------------------------

def is_due(card: CardState, reference_date: datetime) -> bool:
    """A card without a due date is never due."""
    due = parse_timestamp(card.next_review_at)
    if due is None:
        return False
    return due <= as_utc(reference_date)


def get_due_cards(cards: Iterable[CardState], reference_date: datetime) -> List[CardState]:
    """Return the due cards from *cards*, earliest due date first."""
    due = [c for c in cards if is_due(c, reference_date)]
    due.sort(key=lambda c: parse_timestamp(c.next_review_at))
    return due


@dataclass(frozen=True)
class ReviewProgress:
    total: int = 0
    due: int = 0
    learned: int = 0
    mastered: int = 0
    average_interval: float = 0.0


def calculate_stats(cards: Iterable[CardState], reference_date: datetime) -> ReviewProgress:
    """Summarise learning progress over *cards*.

    A card counts as learned once it has been reviewed, and as mastered
    once it reaches box 4 or a two-week interval.
    """
    cards = list(cards)
    if not cards:
        return ReviewProgress()

    due = sum(1 for c in cards if is_due(c, reference_date))
    learned = sum(1 for c in cards if c.reps > 0)
    mastered = sum(1 for c in cards if c.box >= 4 or c.interval >= INTERVAL_TABLE[-1])
    average = round_half_away(sum(c.interval for c in cards) / len(cards), 2)
    return ReviewProgress(
        total=len(cards),
        due=due,
        learned=learned,
        mastered=mastered,
        average_interval=average,
    )
