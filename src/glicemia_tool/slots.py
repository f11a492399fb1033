"""Classificação de leituras em horários canônicos do dia."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from glicemia_tool.model import DAY_SLOTS, Condition, Reading, Slot

SLOT_LABELS: dict[Slot, str] = {
    Slot.FASTING: "Jejum",
    Slot.POST_BREAKFAST: "2h Pós Café",
    Slot.PRE_LUNCH: "Antes Almoço",
    Slot.POST_LUNCH: "2h Pós Almoço",
    Slot.PRE_DINNER: "Antes Jantar",
    Slot.POST_DINNER: "2h Pós Jantar",
    Slot.OVERNIGHT: "Madrugada",
}

_CONDITION_LABELS: dict[Condition, str] = {
    Condition.FASTING: "Jejum",
    Condition.BEFORE_MEAL: "Antes Ref.",
    Condition.AFTER_MEAL: "Após Ref.",
    Condition.BEDTIME: "Ao Dormir",
    Condition.OTHER: "Outro",
}

# (start_hour, end_hour, slot), end exclusive.
_BEFORE_MEAL_WINDOWS: tuple[tuple[int, int, Slot], ...] = (
    (5, 10, Slot.FASTING),
    (10, 14, Slot.PRE_LUNCH),
    (14, 23, Slot.PRE_DINNER),
)
_AFTER_MEAL_WINDOWS: tuple[tuple[int, int, Slot], ...] = (
    (5, 12, Slot.POST_BREAKFAST),
    (12, 16, Slot.POST_LUNCH),
    (16, 23, Slot.POST_DINNER),
)


@dataclass
class DaySlots:
    """One calendar date with the first reading occupying each slot."""

    day: date
    slots: dict[Slot, Reading] = field(default_factory=dict)

    def get(self, slot: Slot) -> Reading | None:
        """Return the reading in ``slot`` or None when empty."""
        return self.slots.get(slot)


def classify_slot(reading: Reading) -> Slot:
    """Map one reading to its canonical daily slot.

    Args:
        reading: Reading to classify.

    Returns:
        The slot; UNCLASSIFIED when no rule applies.
    """
    hour = reading.time.hour
    if reading.condition == Condition.FASTING:
        return Slot.FASTING
    if reading.condition == Condition.BEDTIME:
        return Slot.OVERNIGHT
    if reading.condition == Condition.BEFORE_MEAL:
        matched = _match_window(hour, _BEFORE_MEAL_WINDOWS)
        if matched is not None:
            return matched
    if reading.condition == Condition.AFTER_MEAL:
        matched = _match_window(hour, _AFTER_MEAL_WINDOWS)
        if matched is not None:
            return matched
    if 0 <= hour < 5:
        return Slot.OVERNIGHT
    return Slot.UNCLASSIFIED


def _match_window(
    hour: int, windows: tuple[tuple[int, int, Slot], ...]
) -> Slot | None:
    for start, end, slot in windows:
        if start <= hour < end:
            return slot
    return None


def group_by_day(
    readings: Iterable[Reading], *, descending: bool = False
) -> list[DaySlots]:
    """Group readings into one row per calendar date.

    The first reading encountered for a (date, slot) pair keeps the slot;
    later ones are dropped. Dates whose readings are all unclassified still
    get an empty row.

    Args:
        readings: Readings in caller order.
        descending: Newest date first when True.

    Returns:
        Day rows sorted by date.
    """
    days: dict[date, DaySlots] = {}
    for reading in readings:
        day = days.setdefault(reading.date, DaySlots(day=reading.date))
        slot = classify_slot(reading)
        if slot == Slot.UNCLASSIFIED:
            continue
        day.slots.setdefault(slot, reading)
    return sorted(days.values(), key=lambda d: d.day, reverse=descending)


def condition_label(condition: Condition) -> str:
    """Short Portuguese label for a condition, as printed in the exports."""
    return _CONDITION_LABELS.get(condition, "Outro")


def slot_headers() -> list[str]:
    """Column labels of the grouped table, in slot order."""
    return [SLOT_LABELS[slot] for slot in DAY_SLOTS]
