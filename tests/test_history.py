from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from glicemia_tool import history
from glicemia_tool.history import build_history, history_label, weekly_anchors
from glicemia_tool.model import Condition, ExposureFormula, HistoryPoint, Reading

TODAY = date(2025, 6, 30)


def _at(day: date, value: int = 100) -> Reading:
    return Reading(id=str(day), value=value, date=day, time=time(8, 0), condition=Condition.FASTING)


def test_weekly_anchors_oldest_first() -> None:
    anchors = weekly_anchors(TODAY)
    assert len(anchors) == 13
    assert anchors[0] == TODAY - timedelta(days=84)
    assert anchors[-1] == TODAY


def test_history_has_thirteen_points_with_dense_data() -> None:
    readings = [_at(TODAY - timedelta(days=i)) for i in range(0, 200, 3)]
    points = build_history(readings, TODAY)
    assert len(points) == 13
    assert [p.anchor_date for p in points] == weekly_anchors(TODAY)


def test_history_omits_anchors_with_empty_window() -> None:
    # A single reading 20 days ago is only inside windows of anchors after it.
    readings = [_at(TODAY - timedelta(days=20), 120)]
    points = build_history(readings, TODAY)
    assert 0 < len(points) < 13
    assert all(p.anchor_date >= TODAY - timedelta(days=20) for p in points)
    assert all(p.window_average == 120.0 for p in points)


def test_history_empty_readings() -> None:
    assert build_history([], TODAY) == []


def test_history_window_bounds_are_inclusive() -> None:
    readings = [_at(TODAY - timedelta(days=90), 80), _at(TODAY, 120)]
    points = build_history(readings, TODAY, weeks=1)
    assert len(points) == 1
    assert points[0].window_average == 100.0
    assert points[0].estimated_exposure == 5.1


def test_history_drops_readings_outside_window() -> None:
    readings = [_at(TODAY - timedelta(days=91), 300), _at(TODAY, 100)]
    points = build_history(readings, TODAY, weeks=1)
    assert points[0].window_average == 100.0


def test_history_clinical_formula_option() -> None:
    points = build_history(
        [_at(TODAY, 100)],
        TODAY,
        weeks=1,
        exposure_formula=ExposureFormula.CLINICAL_STANDARD,
    )
    assert points[0].estimated_exposure == 5.7


def test_history_defaults_to_local_today(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(history, "local_today", lambda: TODAY)
    points = build_history([_at(TODAY)])
    assert points[-1].anchor_date == TODAY


def test_history_label_portuguese_month() -> None:
    point = HistoryPoint(anchor_date=date(2025, 2, 3), window_average=100.0, estimated_exposure=5.1)
    assert history_label(point) == "03/fev"
