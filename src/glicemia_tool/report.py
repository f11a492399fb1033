"""Exportação de leituras: CSV (padrão/diário) e relatório HTML imprimível.

Todas as superfícies usam ``classify_status`` e ``group_by_day``, então a
mesma entrada produz os mesmos rótulos em qualquer formato.
"""

from __future__ import annotations

import csv
import html
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

import pandas as pd

from glicemia_tool.chart import ChartOptions, chart_data_uri, render_chart_png
from glicemia_tool.history import LOCAL_TZ
from glicemia_tool.model import (
    DAY_SLOTS,
    Limits,
    Medication,
    MedicationType,
    Reading,
    Status,
)
from glicemia_tool.slots import condition_label, group_by_day, slot_headers
from glicemia_tool.stats import compute, legacy_a1c, mean_value
from glicemia_tool.status import (
    STATUS_COLORS,
    classify_status,
    status_distribution,
    status_label,
)

logger = logging.getLogger(__name__)

BOM = "\ufeff"
EMPTY_SLOT = "-"
MEDICATION_TITLE = "MEDICAÇÕES DE USO CONTÍNUO"

STANDARD_HEADER = [
    "Data",
    "Hora",
    "Condição",
    "Glicemia (mg/dL)",
    "Status",
    "Observações",
]
VALUE_COLUMN = 3

MEDICATION_TYPE_LABELS: dict[MedicationType, str] = {
    MedicationType.RAPID_INSULIN: "Insulina Rápida",
    MedicationType.SLOW_INSULIN: "Insulina Lenta",
    MedicationType.INTERMEDIATE_INSULIN: "Insulina Intermediária",
    MedicationType.BASAL_INSULIN: "Insulina Basal",
    MedicationType.BOLUS_INSULIN: "Insulina Bolus",
    MedicationType.OTHER_MEDICATION: "Outro Medicamento",
}

_WEEKDAYS_PT: tuple[str, ...] = ("seg", "ter", "qua", "qui", "sex", "sáb", "dom")


@dataclass(frozen=True)
class ReportTable:
    """Header, rows and per-cell status of an exported table."""

    header: list[str]
    rows: list[list[object]]
    # column index -> status, one mapping per row
    cell_status: list[dict[int, Status]] = field(default_factory=list)


def format_date(value: date) -> str:
    """dd/MM/yyyy."""
    return value.strftime("%d/%m/%Y")


def export_filename(start: date, end: date, *, grouped: bool = False) -> str:
    """Download filename for the CSV export."""
    prefix = "diario-glicemia" if grouped else "glicemia"
    return f"{prefix}-{start:%Y-%m-%d}-ate-{end:%Y-%m-%d}.csv"


def medication_type_label(medication_type: MedicationType) -> str:
    """Portuguese label for a medication type."""
    return MEDICATION_TYPE_LABELS.get(medication_type, "Outro")


def build_table(
    readings: Sequence[Reading], limits: Limits, *, grouped: bool = False
) -> ReportTable:
    """Rows shared by the CSV and spreadsheet exports.

    Args:
        readings: Readings in caller order.
        limits: Threshold snapshot for the status column/cells.
        grouped: One row per date with the 7 slot columns when True.

    Returns:
        The table with its status annotations.
    """
    if grouped:
        header = ["Data", *slot_headers()]
        rows: list[list[object]] = []
        statuses: list[dict[int, Status]] = []
        for day in group_by_day(readings):
            row: list[object] = [format_date(day.day)]
            row_status: dict[int, Status] = {}
            for col, slot in enumerate(DAY_SLOTS, start=1):
                reading = day.get(slot)
                if reading is None:
                    row.append(EMPTY_SLOT)
                    continue
                row.append(reading.value)
                row_status[col] = classify_status(reading.value, limits)
            rows.append(row)
            statuses.append(row_status)
        return ReportTable(header=header, rows=rows, cell_status=statuses)

    rows = []
    statuses = []
    for reading in readings:
        status = classify_status(reading.value, limits)
        rows.append(
            [
                format_date(reading.date),
                reading.time.strftime("%H:%M"),
                condition_label(reading.condition),
                reading.value,
                status_label(status),
                reading.observations or "",
            ]
        )
        statuses.append({VALUE_COLUMN: status, VALUE_COLUMN + 1: status})
    return ReportTable(header=list(STANDARD_HEADER), rows=rows, cell_status=statuses)


def medication_rows(
    medications: Sequence[Medication], *, grouped: bool = False
) -> tuple[list[str], list[list[object]]]:
    """Header and rows of the medication sub-table."""
    last = "Horário" if grouped else "Observações"
    rows: list[list[object]] = []
    for med in medications:
        if grouped:
            extra = (
                med.administration_time.strftime("%H:%M")
                if med.administration_time is not None
                else EMPTY_SLOT
            )
        else:
            extra = med.notes or ""
        rows.append(
            [
                med.name,
                medication_type_label(med.medication_type),
                med.display_dosage,
                extra,
            ]
        )
    return ["Nome", "Tipo", "Dosagem", last], rows


def _to_csv(header: list[str], rows: list[list[object]]) -> str:
    df = pd.DataFrame(rows, columns=header)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def render_csv(
    readings: Sequence[Reading],
    limits: Limits,
    medications: Sequence[Medication] = (),
    *,
    grouped: bool = False,
) -> str:
    """Render the tabular export as BOM-prefixed UTF-8 text.

    The standard variant has one row per reading; the grouped variant one
    row per calendar date. The medication sub-table, when present, follows
    after two blank lines.
    """
    table = build_table(readings, limits, grouped=grouped)
    content = BOM + _to_csv(table.header, table.rows)
    if medications:
        med_header, med_rows = medication_rows(medications, grouped=grouped)
        content += "\n\n"
        content += f'"{MEDICATION_TITLE}"\n'
        content += _to_csv(med_header, med_rows)
    return content


# --- Relatório imprimível -------------------------------------------------

_CSS = """
@page { margin: 1cm; }
body { font-family: 'Segoe UI', Arial, sans-serif; padding: 20px; color: #333; }
.header { border-bottom: 3px solid #0f766e; padding-bottom: 20px; margin-bottom: 30px; }
h1 { color: #0f766e; margin: 0 0 10px 0; font-size: 28px; }
h2 { color: #0f766e; font-size: 18px; margin-top: 30px; border-bottom: 2px solid #e2e8f0; padding-bottom: 10px; }
.period { color: #666; font-size: 14px; }
.stats { display: grid; grid-template-columns: repeat(3, 1fr); gap: 15px; margin: 30px 0; }
.stat-card { background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 8px; padding: 15px; text-align: center; }
.stat-label { font-size: 12px; color: #64748b; text-transform: uppercase; font-weight: 600; margin-bottom: 8px; }
.stat-value { font-size: 24px; font-weight: bold; color: #0f766e; }
.stat-unit { font-size: 12px; color: #94a3b8; }
.chart-container { margin: 30px 0; text-align: center; page-break-inside: avoid; }
.chart-container img { max-width: 100%; height: auto; border: 1px solid #e2e8f0; border-radius: 8px; }
.chart-title { font-size: 16px; font-weight: 600; color: #0f766e; margin-bottom: 15px; }
.hba1c-box { background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 8px; padding: 20px; text-align: center; }
.hba1c-value { font-size: 42px; font-weight: bold; color: #7e22ce; }
table.readings { width: 100%; border-collapse: collapse; margin-top: 20px; font-size: 13px; }
table.readings tr { page-break-inside: avoid; }
table.readings th, table.readings td { border: 1px solid #e2e8f0; padding: 10px 12px; }
table.readings th { background-color: #0f766e; color: white; font-weight: 600; }
.status-badge { display: inline-block; padding: 4px 8px; border-radius: 4px; font-size: 11px; font-weight: 600; }
.medications-section { margin: 30px 0; padding: 20px; background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 8px; page-break-inside: avoid; }
.medication-name { font-weight: 600; color: #0f766e; font-size: 14px; }
.medication-details { color: #64748b; font-size: 12px; margin-top: 5px; }
.footer { margin-top: 40px; padding-top: 20px; border-top: 2px solid #e2e8f0; font-size: 11px; color: #64748b; page-break-inside: avoid; }
.footer p { margin: 5px 0; }
"""


def _status_css() -> str:
    lines = []
    for status, (background, text) in STATUS_COLORS.items():
        lines.append(f".status-{status.value} {{ background: {background}; color: {text}; }}")
        lines.append(f".cell-{status.value} {{ background: {background}; }}")
    return "\n".join(lines)


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def _stat_card(label: str, value: object, unit: str = "") -> str:
    unit_html = f' <span class="stat-unit">{_esc(unit)}</span>' if unit else ""
    return (
        '<div class="stat-card">'
        f'<div class="stat-label">{_esc(label)}</div>'
        f'<div class="stat-value">{_esc(value)}{unit_html}</div>'
        "</div>"
    )


def _summary_cards(readings: Sequence[Reading]) -> str:
    summary = compute(readings)
    cards = [
        _stat_card("Média", summary.average, "mg/dL"),
        _stat_card("Maior Leitura", summary.max, "mg/dL"),
        _stat_card("Menor Leitura", summary.min, "mg/dL"),
        _stat_card("Total Registros", len(readings)),
        _stat_card("GMI", f"{summary.estimated_exposure:.1f}", "%"),
        _stat_card("Variabilidade (CV)", f"{summary.coefficient_of_variation:.1f}", "%"),
    ]
    return '<div class="stats">' + "".join(cards) + "</div>"


def _chart_section(data_uri: str, hba1c: str | None) -> str:
    if not data_uri:
        return ""
    image = f'<img src="{data_uri}" alt="Gráfico de Glicemia" />'
    if hba1c is None:
        return (
            '<div class="chart-container">'
            '<div class="chart-title">Gráfico de Evolução da Glicemia</div>'
            f"{image}</div>"
        )
    shown = hba1c if hba1c == EMPTY_SLOT else f"{hba1c}%"
    return (
        '<table class="layout"><tr>'
        f'<td style="width: 75%; padding-right: 20px;">{image}</td>'
        '<td style="width: 25%;"><div class="hba1c-box">'
        "<div>HbA1c Estimada</div>"
        f'<div class="hba1c-value">{_esc(shown)}</div>'
        "<div>Baseado nos últimos 3 meses</div>"
        "</div></td></tr></table>"
    )


def _flat_table(readings: Sequence[Reading], limits: Limits) -> str:
    head = "".join(
        f"<th>{_esc(h)}</th>"
        for h in ("Data", "Hora", "Condição", "Glicemia", "Status", "Observações")
    )
    body = []
    for reading in readings:
        status = classify_status(reading.value, limits)
        body.append(
            "<tr>"
            f"<td>{format_date(reading.date)}</td>"
            f"<td>{reading.time.strftime('%H:%M')}</td>"
            f"<td>{_esc(condition_label(reading.condition))}</td>"
            f"<td><strong>{reading.value} mg/dL</strong></td>"
            f'<td><span class="status-badge status-{status.value}">'
            f"{_esc(status_label(status))}</span></td>"
            f"<td>{_esc(reading.observations or '-')}</td>"
            "</tr>"
        )
    return (
        '<table class="readings"><thead><tr>'
        + head
        + "</tr></thead><tbody>"
        + "".join(body)
        + "</tbody></table>"
    )


def _grouped_table(readings: Sequence[Reading], limits: Limits) -> str:
    head = '<th style="text-align: left;">Data</th>' + "".join(
        f"<th>{_esc(h)}</th>" for h in slot_headers()
    )
    body = []
    for day in group_by_day(readings):
        weekday = _WEEKDAYS_PT[day.day.weekday()]
        cells = [
            f'<td style="text-align: left; font-weight: bold;">{day.day:%d/%m} '
            f'<span style="font-weight: normal; color: #666;">{weekday}</span></td>'
        ]
        for slot in DAY_SLOTS:
            reading = day.get(slot)
            if reading is None:
                cells.append(f"<td>{EMPTY_SLOT}</td>")
                continue
            status = classify_status(reading.value, limits)
            cells.append(
                f'<td class="cell-{status.value}" title="{_esc(status_label(status))}">'
                f"<strong>{reading.value}</strong></td>"
            )
        body.append("<tr>" + "".join(cells) + "</tr>")
    return (
        '<table class="readings"><thead><tr>'
        + head
        + "</tr></thead><tbody>"
        + "".join(body)
        + "</tbody></table>"
    )


def _medications_section(medications: Sequence[Medication]) -> str:
    if not medications:
        return ""
    items = []
    for med in medications:
        notes = (
            f'<br/><span style="font-style: italic">Obs: {_esc(med.notes)}</span>'
            if med.notes
            else ""
        )
        items.append(
            "<div>"
            f'<div class="medication-name">{_esc(med.name)}</div>'
            '<div class="medication-details">'
            f"{_esc(medication_type_label(med.medication_type))} • "
            f"{_esc(med.display_dosage)}{notes}</div></div>"
        )
    return (
        '<div class="medications-section"><h2>Medicações de Uso Contínuo</h2>'
        + "".join(items)
        + "</div>"
    )


def _fmt_limit(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _footer(readings: Sequence[Reading], limits: Limits, generated_at: datetime) -> str:
    dist = status_distribution(readings, limits)
    hypo = _fmt_limit(limits.hypo_limit)
    fasting_max = _fmt_limit(limits.fasting_max)
    post_meal = _fmt_limit(limits.post_meal_max)
    ranges = {
        Status.LOW: f"&lt;{hypo} mg/dL",
        Status.NORMAL: f"{hypo}-{fasting_max} mg/dL",
        Status.ATTENTION: f"&gt;{fasting_max} até {post_meal} mg/dL",
        Status.HIGH: f"&gt;{post_meal} mg/dL",
    }
    lines = ["<p><strong>Distribuição dos Resultados:</strong></p>"]
    for status in (Status.NORMAL, Status.ATTENTION, Status.HIGH, Status.LOW):
        count, pct = dist[status]
        lines.append(
            f'<p class="tier-{status.value}">{_esc(status_label(status))} '
            f"({ranges[status]}): {count} leitura(s) - {pct:.1f}%</p>"
        )
    lines.append(
        '<p style="margin-top: 20px;"><strong>Relatório gerado em:</strong> '
        f"{generated_at:%d/%m/%Y} às {generated_at:%H:%M}</p>"
    )
    lines.append(
        '<p class="legend" style="margin-top: 10px; font-style: italic;">'
        f"Valores de referência: Baixo &lt;{hypo} | Normal {hypo}-{fasting_max} | "
        f"Atenção até {post_meal} | Alto &gt;{post_meal} mg/dL</p>"
    )
    return '<div class="footer">' + "".join(lines) + "</div>"


def render_html(
    readings: Sequence[Reading],
    limits: Limits,
    start: date,
    end: date,
    *,
    medications: Sequence[Medication] = (),
    grouped: bool = False,
    window_readings: Sequence[Reading] | None = None,
    chart_png: bytes | None = None,
    chart_options: ChartOptions = ChartOptions(),
    generated_at: datetime | None = None,
) -> str:
    """Render the printable report as a self-contained HTML document.

    Args:
        readings: Readings of the exported period, in table order.
        limits: Threshold snapshot for status colours and the footer.
        start: First day of the period.
        end: Last day of the period.
        medications: Optional medication section entries.
        grouped: Per-date slot table instead of the flat list.
        window_readings: 90-day readings for the estimated HbA1c box of
            the grouped report; "-" when empty or missing.
        chart_png: Pre-rendered chart; rendered from ``readings`` if None.
        chart_options: Raster size used when rendering the chart.
        generated_at: Timestamp printed in the footer (local now if None).

    Returns:
        The HTML document. The chart section is omitted when no image
        could be produced.
    """
    png = chart_png if chart_png is not None else render_chart_png(
        readings, limits, chart_options
    )
    data_uri = chart_data_uri(png)
    if not data_uri:
        logger.info("Report rendered without chart")
    stamp = generated_at or datetime.now(tz=LOCAL_TZ)

    hba1c: str | None = None
    if grouped:
        window = list(window_readings or [])
        hba1c = f"{legacy_a1c(mean_value(window)):.1f}" if window else "-"

    title = "Diário de Glicemia" if grouped else "Relatório de Controle de Glicemia"
    table = _grouped_table(readings, limits) if grouped else _flat_table(readings, limits)
    page_css = "@page { size: landscape; }" if grouped else ""

    return (
        "<!DOCTYPE html>\n"
        '<html lang="pt-BR"><head><meta charset="UTF-8">'
        f"<title>{_esc(title)}</title>"
        f"<style>{_CSS}{_status_css()}\n{page_css}</style></head><body>"
        f'<div class="header"><h1>{_esc(title)}</h1>'
        f'<p class="period">Período: <strong>{format_date(start)}</strong> até '
        f"<strong>{format_date(end)}</strong></p></div>"
        + _summary_cards(readings)
        + _chart_section(data_uri, hba1c)
        + "<h2>Histórico de Leituras</h2>"
        + table
        + _medications_section(medications)
        + _footer(readings, limits, stamp)
        + "</body></html>"
    )
