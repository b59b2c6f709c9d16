"""
Lexibox – Daily card selection
===============================
Picks today's reviews from the due cards, ranked by priority, and works
out how many new cards the session should still take in.

Reservation rule
----------------
When the new-card quota is a large share of the daily cap
(``min_new_per_day / max_daily_reviews >= new_reserve_ratio``) and there
are more due cards than would leave room for it, due cards are cut back
to ``max_daily_reviews - min_new_per_day``. Otherwise due cards fill the
day first and new cards get whatever is left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from core.card_state import CardState
from core.dateutils import EPOCH, parse_timestamp, to_count
from core.priority import PriorityWeights, score_priority
from core.srs_engine import is_due

log = logging.getLogger(__name__)

DEFAULT_NEW_RESERVE_RATIO = 0.4


@dataclass(frozen=True)
class DailySelectionConfig:
    max_daily_reviews: int = 20
    min_new_per_day: int = 3
    priority_weights: PriorityWeights = field(default_factory=PriorityWeights)
    # Share of the daily cap the new-card quota must reach before due
    # cards are held back for it.
    new_reserve_ratio: float = DEFAULT_NEW_RESERVE_RATIO
    # Upper bound reported as ``may_new``; None means "any free slot".
    max_new_per_day: int | None = None


@dataclass(frozen=True)
class SelectionResult:
    due_picked: Tuple[CardState, ...] = ()
    need_new: int = 0
    may_new: int = 0


def _tie_break_key(card: CardState):
    reviewed = parse_timestamp(card.last_reviewed_at) or EPOCH
    return reviewed, card.card_id


def rank_due_cards(
    cards: Iterable[CardState],
    reference_date: datetime,
    weights: PriorityWeights,
) -> List[CardState]:
    """Sort *cards* most urgent first.

    Ties go to the card reviewed longest ago (never-reviewed first), then
    to the smaller card id, so the order is fully deterministic.
    """
    scored = [(score_priority(c, reference_date, weights), c) for c in cards]
    # Stable sorts: apply the secondary key first, then the score.
    scored.sort(key=lambda item: _tie_break_key(item[1]))
    scored.sort(key=lambda item: item[0], reverse=True)
    return [card for _, card in scored]


def reserve_for_new(due_count: int, max_daily: int, min_new: int, ratio: float) -> bool:
    """Whether due cards must be held back to leave room for new ones."""
    if max_daily <= 0 or min_new <= 0:
        return False
    high_demand = min_new / max_daily >= ratio
    return high_demand and due_count > max_daily - min_new


def select_today(
    candidates: Sequence[CardState],
    reference_date: datetime,
    config: DailySelectionConfig,
) -> SelectionResult:
    """Choose today's reviews from *candidates*.

    Parameters
    ----------
    candidates : sequence of CardState
        Any cards; those not yet due are ignored. Never modified.
    reference_date : datetime
        "Today" for due checks and overdue scoring.
    config : DailySelectionConfig
        Caps, quota and weights. Negative counts are treated as 0.

    Returns
    -------
    SelectionResult
        ``due_picked`` in review order, ``need_new`` new cards the caller
        must supply and ``may_new`` new cards it may supply at most.
    """
    max_daily = to_count(config.max_daily_reviews)
    min_new = to_count(config.min_new_per_day)

    due = [c for c in candidates if is_due(c, reference_date)]
    ranked = rank_due_cards(due, reference_date, config.priority_weights)

    if reserve_for_new(len(ranked), max_daily, min_new, config.new_reserve_ratio):
        due_cap = max(0, max_daily - min_new)
        log.debug("Holding back %d due cards for %d new", len(ranked) - due_cap, min_new)
    else:
        due_cap = min(len(ranked), max_daily)

    picked = tuple(ranked[:due_cap])
    remaining = max_daily - len(picked)
    need_new = min(min_new, remaining)
    if config.max_new_per_day is None:
        may_new = remaining
    else:
        may_new = max(need_new, min(to_count(config.max_new_per_day), remaining))

    log.debug(
        "Selected %d of %d due cards (cap %d); need_new=%d may_new=%d",
        len(picked), len(ranked), max_daily, need_new, may_new,
    )
    return SelectionResult(due_picked=picked, need_new=need_new, may_new=may_new)


def interleave_new_cards(due: Sequence[CardState], new: Sequence[CardState]) -> List[CardState]:
    """Spread *new* cards evenly through the *due* reviews.

    A new card goes in after every ``len(due) // (len(new) + 1)`` reviews
    (at least one); any left over are appended.
    """
    if not new:
        return list(due)
    if not due:
        return list(new)

    result: List[CardState] = []
    step = max(1, len(due) // (len(new) + 1))
    new_idx = 0
    for i, card in enumerate(due):
        result.append(card)
        if new_idx < len(new) and (i + 1) % step == 0:
            result.append(new[new_idx])
            new_idx += 1
    result.extend(new[new_idx:])
    return result
