"""Planilha formatada (XLSX) com as mesmas linhas da exportação CSV."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from glicemia_tool.model import Limits, Reading, Status
from glicemia_tool.report import build_table
from glicemia_tool.stats import daily_summary
from glicemia_tool.status import STATUS_COLORS

_SUMMARY_HEADERS: dict[str, str] = {
    "date": "Data",
    "glucose_count": "Leituras",
    "glucose_min": "Mínima (mg/dL)",
    "glucose_max": "Máxima (mg/dL)",
    "glucose_avg": "Média (mg/dL)",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Sheet names of the report workbook."""

    sheet_name: str = "Leituras"
    summary_sheet_name: str = "Resumo diário"


def write_report_xlsx(
    readings: Sequence[Reading],
    limits: Limits,
    out_path: Path,
    layout: ExcelLayout = ExcelLayout(),
    *,
    grouped: bool = False,
) -> None:
    """Write the readings table and a daily summary to an XLSX file.

    Value cells are filled with the colour of their status tier, using the
    same classification as the CSV and HTML exports.

    Args:
        readings: Readings in table order.
        limits: Threshold snapshot.
        out_path: Output path for the XLSX file.
        layout: Sheet names.
        grouped: Per-date slot table instead of one row per reading.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    table = build_table(readings, limits, grouped=grouped)
    table_df = pd.DataFrame(table.rows, columns=table.header)
    summary_df = daily_summary(readings).rename(columns=_SUMMARY_HEADERS)
    if not summary_df.empty:
        summary_df["Data"] = summary_df["Data"].map(lambda d: d.strftime("%d/%m/%Y"))

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        table_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        summary_df.to_excel(writer, index=False, sheet_name=layout.summary_sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws)
        _apply_status_fills(ws, table.cell_status)
        _format_sheet(writer.book[layout.summary_sheet_name])


def _style_header_row(ws: Any) -> None:
    """Negrito, alinhamento e borda na linha de cabeçalho."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Alinhamento e borda nas linhas de dados."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _apply_column_widths(ws: Any) -> None:
    """Largura pelo maior texto de cada coluna, para evitar ###."""
    for column in ws.iter_cols():
        longest = max((len(str(c.value)) for c in column if c.value is not None), default=0)
        letter = column[0].column_letter
        ws.column_dimensions[letter].width = max(8, min(longest + 2, 40))


def _apply_status_fills(ws: Any, cell_status: list[dict[int, Status]]) -> None:
    """Fill annotated cells with their status background colour."""
    for row_offset, statuses in enumerate(cell_status):
        for col, status in statuses.items():
            background, _text = STATUS_COLORS[status]
            rgb = background.lstrip("#").upper()
            cell = ws.cell(row=row_offset + 2, column=col + 1)
            cell.fill = PatternFill(fill_type="solid", start_color=rgb, end_color=rgb)


def _format_sheet(ws: Any) -> None:
    """Apply borders and widths to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    _apply_column_widths(ws)
