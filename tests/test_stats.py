from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from glicemia_tool.model import Condition, ExposureFormula, Reading, Trend
from glicemia_tool.stats import (
    compute,
    daily_summary,
    estimate_exposure,
    gmi,
    legacy_a1c,
    mean_value,
    readings_to_frame,
    round_half_up,
    time_in_range,
    trend,
    variability_label,
    weekly_change_percent,
)


def _series(values: list[int], start: date = date(2025, 3, 1)) -> list[Reading]:
    return [
        Reading(
            id=str(i),
            value=v,
            date=start + timedelta(days=i),
            time=time(8, 0),
            condition=Condition.FASTING,
        )
        for i, v in enumerate(values)
    ]


def test_compute_empty_is_all_zero_with_exposure_at_zero() -> None:
    s = compute([])
    assert s.average == 0
    assert s.std_dev == 0.0
    assert s.coefficient_of_variation == 0.0
    assert s.min == 0
    assert s.max == 0
    assert s.trend == Trend.STABLE
    assert s.estimated_exposure == 3.3


def test_compute_constant_values() -> None:
    s = compute(_series([100, 100, 100, 100]))
    assert s.average == 100
    assert s.std_dev == 0.0
    assert s.coefficient_of_variation == 0.0
    assert s.trend == Trend.STABLE


def test_compute_population_std_dev() -> None:
    s = compute(_series([80, 120]))
    assert s.average == 100
    assert s.std_dev == 20.0
    assert s.coefficient_of_variation == 20.0
    assert s.estimated_exposure == 5.7
    assert (s.min, s.max) == (80, 120)


def test_compute_rounds_from_unrounded_values() -> None:
    s = compute(_series([90, 100, 110]))
    assert s.std_dev == 8.2
    assert s.coefficient_of_variation == 8.2


def test_compute_legacy_formula() -> None:
    s = compute(_series([80, 120]), ExposureFormula.LEGACY_AVERAGE_OFFSET)
    assert s.estimated_exposure == 5.1


def test_formulas() -> None:
    assert gmi(154) == 7.0
    assert legacy_a1c(100) == 5.1
    assert estimate_exposure(100, ExposureFormula.CLINICAL_STANDARD) == gmi(100)
    assert estimate_exposure(100, ExposureFormula.LEGACY_AVERAGE_OFFSET) == legacy_a1c(100)


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3.0
    assert round_half_up(0.25, 1) == 0.3
    assert round_half_up(5.702, 1) == 5.7


def test_trend_resorts_before_comparing() -> None:
    readings = _series([100, 100, 100, 100, 100, 120, 120, 120, 120, 120])
    assert trend(list(reversed(readings))) == Trend.UP


def test_trend_down_and_single_reading() -> None:
    assert trend(_series([150, 150, 100, 100])) == Trend.STABLE
    assert trend(_series([200, 190, 180, 100, 90, 80])) == Trend.DOWN
    assert trend(_series([200])) == Trend.STABLE


def test_mean_value_empty() -> None:
    assert mean_value([]) == 0.0


def test_time_in_range_inclusive_bounds() -> None:
    assert time_in_range(_series([60, 70, 180, 181])) == 50
    assert time_in_range([]) == 0


def test_weekly_change_percent() -> None:
    today = date(2025, 3, 20)
    readings = [
        *_series([100, 100], start=date(2025, 3, 7)),
        *_series([110, 110], start=date(2025, 3, 14)),
    ]
    assert weekly_change_percent(readings, today) == 10


def test_weekly_change_percent_without_previous_week() -> None:
    readings = _series([110, 120], start=date(2025, 3, 18))
    assert weekly_change_percent(readings, date(2025, 3, 20)) == 0


@pytest.mark.parametrize(("cv", "label"), [(0.0, "stable"), (35.9, "stable"), (36, "unstable")])
def test_variability_label(cv: float, label: str) -> None:
    assert variability_label(cv) == label


def test_readings_to_frame_sorted_by_date_and_time() -> None:
    a = Reading("a", 100, date(2025, 3, 2), time(7, 0), Condition.FASTING)
    b = Reading("b", 140, date(2025, 3, 1), time(13, 0), Condition.AFTER_MEAL)
    c = Reading("c", 120, date(2025, 3, 1), time(9, 0), Condition.AFTER_MEAL)
    df = readings_to_frame([a, b, c])
    assert list(df["id"]) == ["c", "b", "a"]
    assert list(df["condition"]) == ["after_meal", "after_meal", "fasting"]


def test_daily_summary_aggregates_per_date() -> None:
    readings = [
        Reading("1", 100, date(2025, 3, 1), time(7, 0), Condition.FASTING),
        Reading("2", 105, date(2025, 3, 1), time(13, 0), Condition.AFTER_MEAL),
        Reading("3", 130, date(2025, 3, 2), time(7, 0), Condition.FASTING),
    ]
    df = daily_summary(readings)
    assert list(df["date"]) == [date(2025, 3, 1), date(2025, 3, 2)]
    assert list(df["glucose_count"]) == [2, 1]
    assert df.loc[0, "glucose_min"] == 100
    assert df.loc[0, "glucose_max"] == 105
    assert df.loc[0, "glucose_avg"] == 102.5


def test_daily_summary_empty() -> None:
    df = daily_summary([])
    assert df.empty
    assert "glucose_avg" in df.columns
