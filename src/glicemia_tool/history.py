"""Histórico semanal da HbA1c estimada com janela móvel de 90 dias."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta

from dateutil import tz

from glicemia_tool.model import ExposureFormula, HistoryPoint, Reading
from glicemia_tool.stats import estimate_exposure, mean_value, round_half_up

LOCAL_TZ = tz.gettz("America/Sao_Paulo")

WEEKS = 13
WINDOW_DAYS = 90

_MONTHS_PT: tuple[str, ...] = (
    "jan",
    "fev",
    "mar",
    "abr",
    "mai",
    "jun",
    "jul",
    "ago",
    "set",
    "out",
    "nov",
    "dez",
)


def local_today() -> date:
    """Current date in the dashboard's local timezone."""
    return datetime.now(tz=LOCAL_TZ).date()


def weekly_anchors(today: date, weeks: int = WEEKS) -> list[date]:
    """Anchor dates oldest -> newest, one week apart, ending at ``today``."""
    return [today - timedelta(days=7 * i) for i in range(weeks - 1, -1, -1)]


def build_history(
    readings: Sequence[Reading],
    today: date | None = None,
    *,
    weeks: int = WEEKS,
    window_days: int = WINDOW_DAYS,
    exposure_formula: ExposureFormula = ExposureFormula.LEGACY_AVERAGE_OFFSET,
) -> list[HistoryPoint]:
    """Build weekly trailing-window points.

    Each anchor aggregates readings dated within [anchor - window_days,
    anchor], inclusive. Anchors whose window is empty are omitted, so the
    result never contains zero-valued points.

    Args:
        readings: Reading snapshot, any order.
        today: Newest anchor; defaults to the local current date.
        weeks: Number of weekly anchors (current week included).
        window_days: Trailing window length in days.
        exposure_formula: Formula applied to each window average.

    Returns:
        Points ordered oldest -> newest.
    """
    anchor_end = today if today is not None else local_today()
    points: list[HistoryPoint] = []
    for anchor in weekly_anchors(anchor_end, weeks):
        start = anchor - timedelta(days=window_days)
        window = [r for r in readings if start <= r.date <= anchor]
        if not window:
            continue
        average = mean_value(window)
        points.append(
            HistoryPoint(
                anchor_date=anchor,
                window_average=round_half_up(average, 1),
                estimated_exposure=estimate_exposure(average, exposure_formula),
            )
        )
    return points


def history_label(point: HistoryPoint) -> str:
    """Short 'dd/mmm' label for a history point (Portuguese months)."""
    anchor = point.anchor_date
    return f"{anchor.day:02d}/{_MONTHS_PT[anchor.month - 1]}"
