"""Classificação de status (Baixo/Normal/Atenção/Alto) compartilhada."""

from __future__ import annotations

from collections.abc import Sequence

from glicemia_tool.model import Limits, Reading, Status
from glicemia_tool.stats import round_half_up

STATUS_LABELS: dict[Status, str] = {
    Status.LOW: "Baixo",
    Status.NORMAL: "Normal",
    Status.ATTENTION: "Atenção",
    Status.HIGH: "Alto",
}

# (background, text) per tier.
STATUS_COLORS: dict[Status, tuple[str, str]] = {
    Status.LOW: ("#fef3c7", "#92400e"),
    Status.NORMAL: ("#dcfce7", "#166534"),
    Status.ATTENTION: ("#fed7aa", "#9a3412"),
    Status.HIGH: ("#fee2e2", "#991b1b"),
}


def classify_status(value: float, limits: Limits) -> Status:
    """Four-tier status used by every export format.

    Comparisons are literal; non-monotonic limits are not corrected.
    """
    if value < limits.hypo_limit:
        return Status.LOW
    if value <= limits.fasting_max:
        return Status.NORMAL
    if value <= limits.post_meal_max:
        return Status.ATTENTION
    return Status.HIGH


def status_label(status: Status) -> str:
    """Portuguese label for a status tier."""
    return STATUS_LABELS[status]


def status_distribution(
    readings: Sequence[Reading], limits: Limits
) -> dict[Status, tuple[int, float]]:
    """Count and percentage (1 decimal) of readings per export tier."""
    counts = {status: 0 for status in Status}
    for reading in readings:
        counts[classify_status(reading.value, limits)] += 1
    total = len(readings)
    return {
        status: (count, round_half_up(count / total * 100, 1) if total else 0.0)
        for status, count in counts.items()
    }
