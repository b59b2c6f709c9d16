"""
Tests for the review priority score.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.card_state import CardState
from core.priority import PriorityWeights, overdue_days, score_priority

TODAY = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
WEIGHTS = PriorityWeights(ease=0.5, overdue_days=0.3, box=0.2)


def card(**kw) -> CardState:
    kw.setdefault("card_id", "x")
    kw.setdefault("next_review_at", TODAY)
    return CardState(**kw)


class TestComponents:
    def test_known_score(self):
        c = card(ease=2.0, box=1, next_review_at=TODAY - timedelta(days=7))
        # 0.5 * 1.0 + 0.3 * 1.0 + 0.2 * 1.0
        assert score_priority(c, TODAY, WEIGHTS) == pytest.approx(1.0)

    def test_easiest_mastered_card_scores_zero(self):
        c = card(ease=3.0, box=5)
        assert score_priority(c, TODAY, WEIGHTS) == pytest.approx(0.0)

    def test_overdue_days_floor(self):
        assert overdue_days(TODAY - timedelta(days=2, hours=23), TODAY) == 2
        assert overdue_days(TODAY + timedelta(days=3), TODAY) == 0

    def test_overdue_capped_at_seven_days(self):
        a = card(next_review_at=TODAY - timedelta(days=7))
        b = card(next_review_at=TODAY - timedelta(days=40))
        assert score_priority(a, TODAY, WEIGHTS) == score_priority(b, TODAY, WEIGHTS)

    def test_missing_or_bad_due_date_is_not_overdue(self):
        fresh = card(next_review_at=TODAY)
        assert score_priority(card(next_review_at=None), TODAY, WEIGHTS) == score_priority(fresh, TODAY, WEIGHTS)
        assert overdue_days("not a date", TODAY) == 0
        assert overdue_days("2024-03-03T12:00:00Z", TODAY) == 7

    def test_weights_need_not_sum_to_one(self):
        c = card(ease=1.0, box=1, next_review_at=TODAY - timedelta(days=14))
        w = PriorityWeights(ease=2.0, overdue_days=3.0, box=4.0)
        assert score_priority(c, TODAY, w) == pytest.approx(2.0 * 2 + 3.0 + 4.0)


class TestMonotonicity:
    def test_lower_ease_scores_higher(self):
        scores = [score_priority(card(ease=e), TODAY, WEIGHTS) for e in (3.0, 2.5, 2.0, 1.3)]
        assert scores == sorted(scores)

    def test_more_overdue_scores_higher(self):
        scores = [
            score_priority(card(next_review_at=TODAY - timedelta(days=d)), TODAY, WEIGHTS)
            for d in range(0, 10)
        ]
        assert scores == sorted(scores)

    def test_lower_box_scores_higher(self):
        scores = [score_priority(card(box=b), TODAY, WEIGHTS) for b in (5, 4, 3, 2, 1)]
        assert scores == sorted(scores)
        assert scores[0] < scores[-1]
