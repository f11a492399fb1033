"""Impacto de atividades físicas na glicemia (antes x depois)."""

from __future__ import annotations

from collections.abc import Sequence

from glicemia_tool.model import ActivityImpact, ActivityMoment, Pairing, Reading
from glicemia_tool.stats import mean_value


def _activity_key(reading: Reading) -> str | None:
    if reading.activity_type is None:
        return None
    key = reading.activity_type.strip()
    return key or None


def analyze_activity_impact(readings: Sequence[Reading]) -> list[ActivityImpact]:
    """Compare 'before' and 'after' readings per activity type.

    Types are reported in first-seen order. When a type lacks either
    before_measurement or after_activity samples the impact is UNPAIRED:
    the delta is 0 and ``avg_before`` falls back to the type-wide average.

    Args:
        readings: Reading snapshot; readings without activity are ignored.

    Returns:
        One impact per distinct activity type.
    """
    by_type: dict[str, list[Reading]] = {}
    for reading in readings:
        key = _activity_key(reading)
        if key is None:
            continue
        by_type.setdefault(key, []).append(reading)

    impacts: list[ActivityImpact] = []
    for activity_type, group in by_type.items():
        overall = mean_value(group)
        after = [r for r in group if r.activity_moment == ActivityMoment.AFTER_ACTIVITY]
        before = [
            r for r in group if r.activity_moment == ActivityMoment.BEFORE_MEASUREMENT
        ]
        avg_after = mean_value(after)
        if before and after:
            avg_before = mean_value(before)
            impacts.append(
                ActivityImpact(
                    activity_type=activity_type,
                    sample_count=len(group),
                    avg_before=avg_before,
                    avg_after=avg_after,
                    impact_delta=avg_after - avg_before,
                    pairing=Pairing.PAIRED,
                )
            )
            continue
        impacts.append(
            ActivityImpact(
                activity_type=activity_type,
                sample_count=len(group),
                avg_before=overall,
                avg_after=avg_after,
                impact_delta=0.0,
                pairing=Pairing.UNPAIRED,
            )
        )
    return impacts
