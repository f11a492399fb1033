"""Leitura do snapshot JSON exportado pela camada de persistência."""

from __future__ import annotations

import json
import logging
from datetime import date, time
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser

from glicemia_tool.model import (
    ActivityMoment,
    Condition,
    Limits,
    Medication,
    MedicationType,
    Reading,
)
from glicemia_tool.sources.base import DataSource
from glicemia_tool.stats import round_half_up

logger = logging.getLogger(__name__)

_CONDITIONS: dict[str, Condition] = {
    "jejum": Condition.FASTING,
    "antes_refeicao": Condition.BEFORE_MEAL,
    "apos_refeicao": Condition.AFTER_MEAL,
    "ao_dormir": Condition.BEDTIME,
    "outro": Condition.OTHER,
}

_MOMENTS: dict[str, ActivityMoment] = {
    "antes_medicao": ActivityMoment.BEFORE_MEASUREMENT,
    "durante_atividade": ActivityMoment.DURING_ACTIVITY,
    "apos_atividade": ActivityMoment.AFTER_ACTIVITY,
}

_MEDICATION_TYPES: dict[str, MedicationType] = {
    "insulina_rapida": MedicationType.RAPID_INSULIN,
    "insulina_lenta": MedicationType.SLOW_INSULIN,
    "insulina_intermediaria": MedicationType.INTERMEDIATE_INSULIN,
    "insulina_basal": MedicationType.BASAL_INSULIN,
    "insulina_bolus": MedicationType.BOLUS_INSULIN,
    "outro_medicamento": MedicationType.OTHER_MEDICATION,
}


class JsonSnapshotSource(DataSource):
    """Readings, limits and medications from JSON export files."""

    def validate(self) -> None:
        """Validate that every configured file exists."""
        for path in self._paths.configured():
            if not path.exists():
                raise FileNotFoundError(str(path))

    def load_readings(self) -> list[Reading]:
        """Parse the readings export into typed readings.

        Returns:
            Readings in file order (rows without value/date/time skipped).

        Raises:
            ValueError: If the JSON payload is not a list. Rows whose fields
                cannot be parsed are skipped and counted in the warning.
        """
        raw = _load_list(self._paths.readings)
        out: list[Reading] = []
        for item in raw:
            try:
                reading = _item_to_reading(item)
            except (TypeError, ValueError, ArithmeticError):
                # unparseable date/time or non-numeric value
                reading = None
            if reading is not None:
                out.append(reading)
        skipped = len(raw) - len(out)
        if skipped:
            logger.warning("Skipped %d invalid reading row(s)", skipped)
        return out

    def load_limits(self) -> Limits:
        """Limits from the profile export, or defaults when not configured."""
        path = self._paths.limits
        if path is None:
            return Limits()
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("Limits JSON must be an object")
        nested = raw.get("glucose_limits")
        return Limits.from_mapping(nested if isinstance(nested, dict) else raw)

    def load_medications(self) -> list[Medication]:
        """Medications from their export, or [] when not configured."""
        path = self._paths.medications
        if path is None:
            return []
        out: list[Medication] = []
        for item in _load_list(path):
            medication = _item_to_medication(item)
            if medication is not None:
                out.append(medication)
        return out


def _load_list(path: Path) -> list[Any]:
    text = path.read_text(encoding="utf-8")
    raw = _extract_json_list(text)
    if not isinstance(raw, list):
        raise ValueError(f"{path.name}: JSON must be a list")
    return raw


def _extract_json_list(text: str) -> Any:
    """Extract JSON array from text, tolerating leading non-JSON (e.g. log lines)."""
    start = text.find("[")
    if start >= 0:
        return json.loads(text[start:])
    return json.loads(text)


def _text(value: Any) -> str | None:
    """Strip a text field; blank -> None."""
    if value is None:
        return None
    out = str(value).strip()
    return out or None


def _parse_date(value: Any) -> date | None:
    text = _text(value)
    if text is None:
        return None
    return date_parser.isoparse(text).date()


def _parse_time(value: Any) -> time | None:
    text = _text(value)
    if text is None:
        return None
    return date_parser.parse(text).time().replace(second=0, microsecond=0)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(round_half_up(float(value)))


def _item_to_reading(item: Any) -> Reading | None:
    """Convert one export row into a Reading; None if value/date/time missing."""
    if not isinstance(item, dict):
        return None
    value = _optional_int(item.get("reading_value"))
    day = _parse_date(item.get("reading_date"))
    at = _parse_time(item.get("reading_time"))
    if value is None or day is None or at is None:
        return None
    moment = _text(item.get("activity_moment"))
    return Reading(
        id=str(item.get("id") or ""),
        value=value,
        date=day,
        time=at,
        condition=_CONDITIONS.get(str(item.get("condition")), Condition.OTHER),
        observations=_text(item.get("observations")),
        activity_type=_text(item.get("activity_type")),
        activity_moment=_MOMENTS.get(moment) if moment else None,
        carbs=_optional_int(item.get("carbs")),
    )


def _item_to_medication(item: Any) -> Medication | None:
    if not isinstance(item, dict):
        return None
    name = _text(item.get("medication_name"))
    if name is None:
        return None
    continuous = item.get("continuous_dosage")
    return Medication(
        id=str(item.get("id") or ""),
        name=name,
        medication_type=_MEDICATION_TYPES.get(
            str(item.get("medication_type")), MedicationType.OTHER_MEDICATION
        ),
        dosage=float(item.get("dosage") or 0),
        dosage_unit=_text(item.get("dosage_unit")) or "",
        administration_time=_parse_time(item.get("administration_time")),
        notes=_text(item.get("notes")),
        is_continuous=bool(item.get("is_continuous")),
        continuous_dosage=float(continuous) if continuous is not None else None,
        continuous_dosage_unit=_text(item.get("continuous_dosage_unit")),
    )
