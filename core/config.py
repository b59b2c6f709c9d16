"""
Lexibox – Application defaults
===============================
Daily review settings and their validation when they come from user input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple

from core.again_queue import DEFAULT_GAP_SEQUENCE
from core.card_state import LEITNER
from core.daily_selection import DEFAULT_NEW_RESERVE_RATIO, DailySelectionConfig
from core.priority import PriorityWeights


class InvalidConfigError(ValueError):
    """User settings have the wrong shape or type."""


@dataclass(frozen=True)
class AppConfig:
    max_daily_reviews: int = 20
    min_new_per_day: int = 3
    max_new_per_day: int = 5
    again_gap_sequence: Tuple[int, ...] = DEFAULT_GAP_SEQUENCE
    priority_weights: PriorityWeights = field(default_factory=PriorityWeights)
    algorithm: str = LEITNER
    new_reserve_ratio: float = DEFAULT_NEW_RESERVE_RATIO

    def daily_selection(self) -> DailySelectionConfig:
        return DailySelectionConfig(
            max_daily_reviews=self.max_daily_reviews,
            min_new_per_day=self.min_new_per_day,
            priority_weights=self.priority_weights,
            new_reserve_ratio=self.new_reserve_ratio,
            max_new_per_day=self.max_new_per_day,
        )


DEFAULT_CONFIG = AppConfig()


def _as_int(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError(f"{key} must be a number, got {value!r}")
    return int(value)


def _as_float(data: Mapping[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError(f"{key} must be a number, got {value!r}")
    return float(value)


def daily_config_from_mapping(data: Mapping[str, Any]) -> AppConfig:
    """Validate user settings (camelCase keys) and merge them over the defaults.

    Wrong types raise ``InvalidConfigError``; out-of-range numbers are left
    for the engine to clamp.
    """
    if not isinstance(data, Mapping):
        raise InvalidConfigError(f"settings must be a mapping, got {type(data).__name__}")

    d = DEFAULT_CONFIG
    weights = data.get("priorityWeights", {})
    if not isinstance(weights, Mapping):
        raise InvalidConfigError("priorityWeights must be a mapping")
    dw = d.priority_weights

    gaps = data.get("againGapSequence", d.again_gap_sequence)
    if isinstance(gaps, (str, bytes)) or not hasattr(gaps, "__iter__"):
        raise InvalidConfigError(f"againGapSequence must be a list, got {gaps!r}")
    try:
        gaps = tuple(int(g) for g in gaps)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigError(f"againGapSequence: {exc}") from exc

    algorithm = data.get("algorithm", d.algorithm)
    if not isinstance(algorithm, str):
        raise InvalidConfigError(f"algorithm must be a string, got {algorithm!r}")

    return AppConfig(
        max_daily_reviews=_as_int(data, "maxDailyReviews", d.max_daily_reviews),
        min_new_per_day=_as_int(data, "minNewPerDay", d.min_new_per_day),
        max_new_per_day=_as_int(data, "maxNewPerDay", d.max_new_per_day),
        again_gap_sequence=gaps,
        priority_weights=PriorityWeights(
            ease=_as_float(weights, "ease", dw.ease),
            overdue_days=_as_float(weights, "overdueDays", dw.overdue_days),
            box=_as_float(weights, "box", dw.box),
        ),
        algorithm=algorithm,
        new_reserve_ratio=_as_float(data, "newReserveRatio", d.new_reserve_ratio),
    )
