"""
Lexibox – "Again" queue handling
=================================
Re-queues a lapsed card a few positions further on in today's session.
Only the in-memory order changes; the card's schedule is untouched until
it is actually answered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, TypeVar

from core.dateutils import clamp

log = logging.getLogger(__name__)

DEFAULT_GAP_SEQUENCE = (2, 5, 10)

T = TypeVar("T")


def _target_index(
    queue_length: int,
    again_count: int,
    gap_sequence: Sequence[int],
    current_position: int,
) -> int:
    """Index the re-queued card lands on in a queue of *queue_length* items."""
    if not gap_sequence:
        return queue_length
    again_count = max(0, again_count)
    current_position = max(0, current_position)
    gap = gap_sequence[min(again_count, len(gap_sequence) - 1)]
    return clamp(current_position + gap, 0, queue_length)


def reinsert_again(
    queue: Sequence[T],
    card: T,
    again_count: int,
    gap_sequence: Sequence[int],
    current_position: int,
) -> List[T]:
    """Return a new queue with *card* inserted after the right gap.

    The n-th Again on a card (0-based *again_count*) uses
    ``gap_sequence[n]``; past the end of the sequence the last gap is
    reused. With an empty sequence the card goes to the back.
    """
    new_queue = list(queue)
    target = _target_index(len(new_queue), again_count, gap_sequence, current_position)
    new_queue.insert(target, card)
    return new_queue


@dataclass
class AgainSession:
    """Caller-owned Again bookkeeping for one study session.

    Holds the ordered queue and how often each card id has been sent back.
    Discarded when the session ends.
    """

    queue: List = field(default_factory=list)
    gap_sequence: Sequence[int] = DEFAULT_GAP_SEQUENCE
    again_counts: Dict[str, int] = field(default_factory=dict)

    def again_count(self, card_id: str) -> int:
        return self.again_counts.get(card_id, 0)

    def again(self, card, current_position: int) -> int:
        """Send *card* back into the queue; return its new index."""
        count = self.again_count(card.card_id)
        position = _target_index(len(self.queue), count, self.gap_sequence, current_position)
        self.queue = reinsert_again(
            self.queue, card, count, self.gap_sequence, current_position
        )
        self.again_counts[card.card_id] = count + 1
        log.debug("Again #%d for card %s -> position %d", count + 1, card.card_id, position)
        return position

    def reset(self) -> None:
        self.again_counts.clear()
