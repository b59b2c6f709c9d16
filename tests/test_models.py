"""
Tests for SQLAlchemy models – card defaults, state round-trips, cascade deletes.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.card_state import CardState, InvalidCardError
from db.models import Card, ReviewLog

NOW = datetime(2024, 1, 15, 7, 30, tzinfo=timezone.utc)


class TestCardDefaults:
    def test_scheduling_defaults(self, session):
        c = Card(word="ephemeral", meaning="short-lived")
        session.add(c)
        session.commit()

        assert len(c.id) == 36
        assert c.box == 1
        assert c.ease == 2.5
        assert c.reps == 0
        assert c.interval == 0
        assert c.last_reviewed_at is None
        assert c.next_review_at is not None

    def test_new_card_state_is_new(self, session):
        c = Card(word="lucid", meaning="clear")
        session.add(c)
        session.commit()
        assert c.to_state().is_new


class TestStateMapping:
    def test_apply_then_read_back(self, session):
        c = Card(word="candid", meaning="frank")
        session.add(c)
        session.commit()

        state = CardState(
            card_id=c.id, box=3, ease=2.36, reps=4, interval=3,
            last_reviewed_at=NOW, next_review_at=NOW + timedelta(days=3),
        )
        c.apply_state(state)
        session.commit()
        session.expire_all()

        stored = session.get(Card, c.id).to_state()
        assert stored == state

    def test_apply_state_rejects_other_card(self, session):
        c = Card(word="terse", meaning="brief")
        session.add(c)
        session.commit()
        with pytest.raises(ValueError):
            c.apply_state(CardState(card_id="someone-else"))


class TestCascade:
    def test_deleting_card_drops_logs(self, session):
        c = Card(word="wane", meaning="decrease")
        session.add(c)
        session.flush()
        session.add(ReviewLog(card_id=c.id, quality=2, algorithm="leitner", interval_after=1))
        session.commit()

        session.delete(c)
        session.commit()
        assert session.query(ReviewLog).count() == 0


class TestFromMapping:
    def test_reads_api_row(self):
        state = CardState.from_mapping({
            "id": "abc", "box": "2", "ease": "2.4", "reps": 3, "interval": "2",
            "lastReviewedAt": "2024-01-14T07:30:00.000Z",
            "nextReviewAt": "2024-01-16T07:30:00.000Z",
        })
        assert state.box == 2
        assert state.ease == 2.4
        assert state.next_review_at == NOW + timedelta(days=1)

    def test_bad_timestamp_becomes_none(self):
        assert CardState.from_mapping({"id": "a", "nextReviewAt": "soon"}).next_review_at is None

    def test_missing_id(self):
        with pytest.raises(InvalidCardError):
            CardState.from_mapping({"box": 1})

    def test_non_numeric_field(self):
        with pytest.raises(InvalidCardError, match="abc"):
            CardState.from_mapping({"id": "abc", "ease": "hard"})

    def test_out_of_range_is_kept_for_engine_to_clamp(self):
        state = CardState.from_mapping({"id": "a", "box": 9, "ease": 0.2})
        assert state.box == 9
        assert state.normalized().box == 5
        assert state.normalized().ease == 1.3


class TestDatabaseSetup:
    def test_url_from_environment(self, monkeypatch):
        from db import database

        monkeypatch.setenv(database.DATABASE_URL_ENV, "sqlite:///:memory:")
        assert database.database_url() == "sqlite:///:memory:"

    def test_init_db_creates_tables(self):
        from sqlalchemy import inspect

        from db.database import init_db, make_engine

        engine = make_engine("sqlite:///:memory:")
        init_db(engine)
        assert {"cards", "review_logs"} <= set(inspect(engine).get_table_names())
