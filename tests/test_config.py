"""
Tests for user settings validation and the numeric/date helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.config import DEFAULT_CONFIG, InvalidConfigError, daily_config_from_mapping
from core.dateutils import parse_timestamp, round_days, round_half_away, whole_days_between


class TestDailyConfig:
    def test_defaults(self):
        assert DEFAULT_CONFIG.max_daily_reviews == 20
        assert DEFAULT_CONFIG.min_new_per_day == 3
        assert DEFAULT_CONFIG.again_gap_sequence == (2, 5, 10)
        selection = DEFAULT_CONFIG.daily_selection()
        assert selection.max_new_per_day == 5
        assert selection.priority_weights.ease == 0.5

    def test_partial_settings_merge_over_defaults(self):
        cfg = daily_config_from_mapping({
            "maxDailyReviews": 30,
            "againGapSequence": [3, 6],
            "priorityWeights": {"box": 0.7},
            "algorithm": "sm2",
        })
        assert cfg.max_daily_reviews == 30
        assert cfg.min_new_per_day == 3
        assert cfg.again_gap_sequence == (3, 6)
        assert cfg.priority_weights.box == 0.7
        assert cfg.priority_weights.overdue_days == 0.3
        assert cfg.algorithm == "sm2"

    @pytest.mark.parametrize("settings", [
        {"maxDailyReviews": "lots"},
        {"minNewPerDay": True},
        {"againGapSequence": "2,5"},
        {"againGapSequence": [2, "x"]},
        {"priorityWeights": [0.5]},
        {"algorithm": 2},
    ])
    def test_bad_shapes_rejected(self, settings):
        with pytest.raises(InvalidConfigError):
            daily_config_from_mapping(settings)

    def test_not_a_mapping(self):
        with pytest.raises(InvalidConfigError):
            daily_config_from_mapping(["maxDailyReviews", 3])


class TestHelpers:
    def test_round_half_away(self):
        assert round_days(2.5) == 3
        assert round_days(12.5) == 13
        assert round_days(15.4) == 15
        assert round_half_away(-2.5) == -3
        assert round_half_away(2.6000000000000005, 2) == 2.6

    def test_whole_days_between_floors(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert whole_days_between(start, start + timedelta(hours=47)) == 1
        assert whole_days_between(start, start - timedelta(hours=1)) == -1

    def test_parse_timestamp(self):
        aware = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert parse_timestamp("2024-01-01T12:00:00Z") == aware
        assert parse_timestamp(aware.replace(tzinfo=None)) == aware
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(12345) is None
