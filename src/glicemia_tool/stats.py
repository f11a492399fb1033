"""Estatísticas descritivas e clínicas sobre um conjunto de leituras.

Todas as funções são totais: entrada vazia devolve zeros, nunca exceções.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from glicemia_tool.model import ExposureFormula, Reading, StatSummary, Trend

FRAME_COLUMNS = [
    "id",
    "date",
    "time",
    "value",
    "condition",
    "activity_type",
    "activity_moment",
]

TREND_WINDOW = 5
TREND_THRESHOLD = 5
CV_STABLE_LIMIT = 36
TIR_LOW = 70
TIR_HIGH = 180


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero on the decimal representation."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def readings_to_frame(readings: Sequence[Reading]) -> pd.DataFrame:
    """Convert readings to a DataFrame sorted by (date, time)."""
    rows = [
        {
            "id": r.id,
            "date": r.date,
            "time": r.time,
            "value": r.value,
            "condition": r.condition.value,
            "activity_type": r.activity_type,
            "activity_moment": (
                r.activity_moment.value if r.activity_moment is not None else None
            ),
        }
        for r in readings
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if df.empty:
        return df
    return df.sort_values(["date", "time"], kind="stable").reset_index(drop=True)


def mean_value(readings: Sequence[Reading]) -> float:
    """Arithmetic mean of the reading values (0.0 when empty)."""
    if not readings:
        return 0.0
    return float(pd.Series([r.value for r in readings], dtype="float64").mean())


def gmi(average: float) -> float:
    """Glucose Management Indicator: 3.31 + 0.02392 * mean mg/dL."""
    return round_half_up(3.31 + 0.02392 * average, 1)


def legacy_a1c(average: float) -> float:
    """Estimated HbA1c used by the windowed history: (mean + 46.7) / 28.7."""
    return round_half_up((average + 46.7) / 28.7, 1)


def estimate_exposure(average: float, formula: ExposureFormula) -> float:
    """Dispatch to the named exposure formula."""
    if formula == ExposureFormula.LEGACY_AVERAGE_OFFSET:
        return legacy_a1c(average)
    return gmi(average)


def trend(readings: Sequence[Reading]) -> Trend:
    """Compare the mean of the oldest and newest readings (up to 5 each).

    Readings are re-sorted chronologically before selecting the windows.
    """
    ordered = sorted(readings, key=lambda r: r.sort_key)
    n = min(TREND_WINDOW, len(ordered))
    if n < 2:
        return Trend.STABLE
    first = mean_value(ordered[:n])
    last = mean_value(ordered[-n:])
    delta = last - first
    if delta > TREND_THRESHOLD:
        return Trend.UP
    if delta < -TREND_THRESHOLD:
        return Trend.DOWN
    return Trend.STABLE


def compute(
    readings: Sequence[Reading],
    exposure_formula: ExposureFormula = ExposureFormula.CLINICAL_STANDARD,
) -> StatSummary:
    """Compute mean, variability, range, trend and estimated exposure.

    Args:
        readings: Reading snapshot, any order.
        exposure_formula: Which named exposure formula to report.

    Returns:
        A fresh summary. Empty input yields zeros, with the exposure
        evaluated at a mean of 0.
    """
    if not readings:
        return StatSummary(
            average=0,
            std_dev=0.0,
            coefficient_of_variation=0.0,
            min=0,
            max=0,
            trend=Trend.STABLE,
            estimated_exposure=estimate_exposure(0.0, exposure_formula),
        )

    values = pd.Series([r.value for r in readings], dtype="float64")
    average = float(values.mean())
    std_dev = float(values.std(ddof=0))
    cv = (std_dev / average) * 100 if average else 0.0

    return StatSummary(
        average=int(round_half_up(average)),
        std_dev=round_half_up(std_dev, 1),
        coefficient_of_variation=round_half_up(cv, 1),
        min=int(values.min()),
        max=int(values.max()),
        trend=trend(readings),
        estimated_exposure=estimate_exposure(average, exposure_formula),
    )


def time_in_range(
    readings: Sequence[Reading], low: float = TIR_LOW, high: float = TIR_HIGH
) -> int:
    """Rounded percentage of readings with low <= value <= high."""
    if not readings:
        return 0
    in_range = sum(1 for r in readings if low <= r.value <= high)
    return int(round_half_up(in_range / len(readings) * 100))


def weekly_change_percent(readings: Sequence[Reading], today: date) -> int:
    """Percent change of the last 7 days' mean against the 7 days before.

    Returns 0 when the previous week has no readings.
    """
    week_start = today - timedelta(days=7)
    previous_start = today - timedelta(days=14)
    current = [r for r in readings if r.date >= week_start]
    previous = [r for r in readings if previous_start <= r.date < week_start]
    previous_avg = mean_value(previous)
    if previous_avg <= 0:
        return 0
    current_avg = round_half_up(mean_value(current))
    return int(round_half_up((current_avg - previous_avg) / previous_avg * 100))


def variability_label(cv: float) -> str:
    """'stable' below the 36% CV target, 'unstable' otherwise."""
    return "stable" if cv < CV_STABLE_LIMIT else "unstable"


def daily_summary(readings: Sequence[Reading]) -> pd.DataFrame:
    """Aggregate readings by day (count/min/max/avg)."""
    df = readings_to_frame(readings)
    if df.empty:
        return pd.DataFrame(
            columns=[
                "date",
                "glucose_count",
                "glucose_min",
                "glucose_max",
                "glucose_avg",
            ]
        )
    g = df.groupby("date", as_index=False).agg(
        glucose_count=("value", "count"),
        glucose_min=("value", "min"),
        glucose_max=("value", "max"),
        glucose_avg=("value", "mean"),
    )
    g["glucose_avg"] = g["glucose_avg"].round(1)
    return g.sort_values("date").reset_index(drop=True)
