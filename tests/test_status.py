from __future__ import annotations

from datetime import date, time

import pytest

from glicemia_tool.model import Condition, Limits, Reading, Status
from glicemia_tool.status import (
    classify_status,
    status_distribution,
    status_label,
)

LIMITS = Limits()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (69, Status.LOW),
        (70, Status.NORMAL),
        (99, Status.NORMAL),
        (100, Status.ATTENTION),
        (140, Status.ATTENTION),
        (141, Status.HIGH),
    ],
)
def test_classify_status_tiers(value: int, expected: Status) -> None:
    assert classify_status(value, LIMITS) == expected


def test_classify_status_applies_malformed_limits_literally() -> None:
    weird = Limits(fasting_max=150, post_meal_max=120, hypo_limit=60)
    assert classify_status(130, weird) == Status.NORMAL
    assert classify_status(155, weird) == Status.HIGH


def test_status_labels() -> None:
    assert [status_label(s) for s in Status] == ["Baixo", "Normal", "Atenção", "Alto"]


def _reading(value: int, condition: Condition) -> Reading:
    return Reading(id="", value=value, date=date(2025, 1, 1), time=time(8, 0), condition=condition)


def test_status_distribution_ignores_condition() -> None:
    values = (65, 110, 130, 181)
    fasting = status_distribution([_reading(v, Condition.FASTING) for v in values], LIMITS)
    after_meal = status_distribution([_reading(v, Condition.AFTER_MEAL) for v in values], LIMITS)
    assert fasting == after_meal
    assert after_meal[Status.ATTENTION] == (2, 50.0)


def test_status_distribution_counts_and_percentages() -> None:
    readings = [_reading(v, Condition.OTHER) for v in (60, 90, 95, 120, 200, 210)]
    dist = status_distribution(readings, LIMITS)
    assert dist[Status.LOW] == (1, 16.7)
    assert dist[Status.NORMAL] == (2, 33.3)
    assert dist[Status.ATTENTION] == (1, 16.7)
    assert dist[Status.HIGH] == (2, 33.3)


def test_status_distribution_empty() -> None:
    assert all(v == (0, 0.0) for v in status_distribution([], LIMITS).values())
