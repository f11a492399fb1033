"""Modelos tipados para leituras de glicemia, limites e medicações."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time
from enum import Enum


class Condition(str, Enum):
    """Meal/context condition recorded with a reading."""

    FASTING = "fasting"
    BEFORE_MEAL = "before_meal"
    AFTER_MEAL = "after_meal"
    BEDTIME = "bedtime"
    OTHER = "other"


class ActivityMoment(str, Enum):
    """When the reading was taken relative to a physical activity."""

    BEFORE_MEASUREMENT = "before_measurement"
    DURING_ACTIVITY = "during_activity"
    AFTER_ACTIVITY = "after_activity"


class Slot(str, Enum):
    """Canonical daily bucket used by the grouped (medical) views."""

    FASTING = "fasting"
    POST_BREAKFAST = "postBreakfast"
    PRE_LUNCH = "preLunch"
    POST_LUNCH = "postLunch"
    PRE_DINNER = "preDinner"
    POST_DINNER = "postDinner"
    OVERNIGHT = "overnight"
    UNCLASSIFIED = "unclassified"


# Column order of the grouped table; UNCLASSIFIED never gets a column.
DAY_SLOTS: tuple[Slot, ...] = (
    Slot.FASTING,
    Slot.POST_BREAKFAST,
    Slot.PRE_LUNCH,
    Slot.POST_LUNCH,
    Slot.PRE_DINNER,
    Slot.POST_DINNER,
    Slot.OVERNIGHT,
)


class Status(str, Enum):
    """Four-tier status shared by every export surface."""

    LOW = "low"
    NORMAL = "normal"
    ATTENTION = "attention"
    HIGH = "high"


class Trend(str, Enum):
    """Direction of the recent readings compared to the oldest ones."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ExposureFormula(str, Enum):
    """Formula used to estimate long-term exposure from a mean glucose."""

    CLINICAL_STANDARD = "clinicalStandard"
    LEGACY_AVERAGE_OFFSET = "legacyAverageOffset"


class Pairing(str, Enum):
    """Whether an activity impact was measured from both sides."""

    PAIRED = "paired"
    UNPAIRED = "unpaired"


class MedicationType(str, Enum):
    """Medication categories shown in the export sections."""

    RAPID_INSULIN = "rapid_insulin"
    SLOW_INSULIN = "slow_insulin"
    INTERMEDIATE_INSULIN = "intermediate_insulin"
    BASAL_INSULIN = "basal_insulin"
    BOLUS_INSULIN = "bolus_insulin"
    OTHER_MEDICATION = "other_medication"


@dataclass(frozen=True)
class Reading:
    """One glucose measurement event plus its context."""

    id: str
    value: int
    date: date
    time: time
    condition: Condition
    observations: str | None = None
    activity_type: str | None = None
    activity_moment: ActivityMoment | None = None
    carbs: int | None = None

    @property
    def sort_key(self) -> tuple[date, time]:
        """Chronological ordering key (date, time)."""
        return (self.date, self.time)


@dataclass(frozen=True)
class Limits:
    """User-configured thresholds in mg/dL.

    The expected ordering fasting_min < fasting_max < post_meal_max <
    hyper_limit is not enforced; comparisons are applied literally.
    """

    fasting_min: float = 70
    fasting_max: float = 99
    post_meal_max: float = 140
    hypo_limit: float = 70
    hyper_limit: float = 180

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object] | None) -> Limits:
        """Build limits from a stored ``glucose_limits`` mapping.

        Missing or null keys fall back to the defaults.
        """
        defaults = cls()
        if not raw:
            return defaults

        def pick(key: str, fallback: float) -> float:
            value = raw.get(key)
            if value is None:
                return fallback
            return float(value)  # type: ignore[arg-type]

        return cls(
            fasting_min=pick("fasting_min", defaults.fasting_min),
            fasting_max=pick("fasting_max", defaults.fasting_max),
            post_meal_max=pick("post_meal_max", defaults.post_meal_max),
            hypo_limit=pick("hypo_limit", defaults.hypo_limit),
            hyper_limit=pick("hyper_limit", defaults.hyper_limit),
        )


@dataclass(frozen=True)
class Medication:
    """A medication entry listed in the export sections."""

    id: str
    name: str
    medication_type: MedicationType
    dosage: float
    dosage_unit: str
    administration_time: time | None = None
    notes: str | None = None
    is_continuous: bool = False
    continuous_dosage: float | None = None
    continuous_dosage_unit: str | None = None

    @property
    def display_dosage(self) -> str:
        """Dosage text, preferring the continuous dosage when set."""
        amount = self.continuous_dosage or self.dosage
        unit = self.continuous_dosage_unit or self.dosage_unit
        return f"{_format_number(amount)} {unit}"


@dataclass(frozen=True)
class StatSummary:
    """Descriptive and clinical statistics for a reading collection."""

    average: int
    std_dev: float
    coefficient_of_variation: float
    min: int
    max: int
    trend: Trend
    estimated_exposure: float


@dataclass(frozen=True)
class HistoryPoint:
    """One weekly anchor of the trailing-window history."""

    anchor_date: date
    window_average: float
    estimated_exposure: float


@dataclass(frozen=True)
class ActivityImpact:
    """Before/after glucose comparison for one activity type.

    ``impact_delta`` is only meaningful when ``pairing`` is PAIRED; for
    UNPAIRED impacts it is 0 by convention and ``avg_before`` holds the
    type-wide average.
    """

    activity_type: str
    sample_count: int
    avg_before: float
    avg_after: float
    impact_delta: float
    pairing: Pairing


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return format(value, "f").rstrip("0").rstrip(".")
