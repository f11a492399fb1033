"""CLI para exportar um snapshot de leituras em CSV, HTML e XLSX."""

from __future__ import annotations

import argparse
import logging
from datetime import date, timedelta
from pathlib import Path

from glicemia_tool.excel_writer import ExcelLayout, write_report_xlsx
from glicemia_tool.history import WINDOW_DAYS
from glicemia_tool.model import Reading
from glicemia_tool.report import export_filename, render_csv, render_html
from glicemia_tool.sources.base import SourcePaths
from glicemia_tool.sources.export_json import JsonSnapshotSource

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Exporta leituras de glicemia (CSV + relatório HTML)."
    )
    parser.add_argument("--readings", required=True, help="JSON de leituras.")
    parser.add_argument("--limits", default=None, help="JSON com glucose_limits.")
    parser.add_argument("--medications", default=None, help="JSON de medicações.")
    parser.add_argument(
        "--start", required=True, type=date.fromisoformat, help="Início (yyyy-MM-dd)."
    )
    parser.add_argument(
        "--end", required=True, type=date.fromisoformat, help="Fim (yyyy-MM-dd)."
    )
    parser.add_argument(
        "--grouped",
        action="store_true",
        help="Diário por horário (uma linha por dia).",
    )
    parser.add_argument("--xlsx", action="store_true", help="Gera também XLSX.")
    parser.add_argument(
        "--out-dir",
        default=str(Path.cwd() / "saidas"),
        help="Diretório de saída (default: ./saidas).",
    )
    return parser.parse_args()


def filter_period(readings: list[Reading], start: date, end: date) -> list[Reading]:
    """Readings dated within [start, end], keeping their order."""
    return [r for r in readings if start <= r.date <= end]


def main() -> int:
    """Run the export CLI.

    Returns:
        Exit code (0 on success).
    """
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    ns = parse_args()

    source = JsonSnapshotSource(
        SourcePaths(
            readings=Path(ns.readings).expanduser(),
            limits=Path(ns.limits).expanduser() if ns.limits else None,
            medications=Path(ns.medications).expanduser() if ns.medications else None,
        )
    )
    source.validate()

    all_readings = source.load_readings()
    limits = source.load_limits()
    medications = source.load_medications()

    readings = filter_period(all_readings, ns.start, ns.end)
    window = filter_period(all_readings, ns.end - timedelta(days=WINDOW_DAYS), ns.end)
    logger.info("Exporting %d of %d readings", len(readings), len(all_readings))

    out_dir = Path(ns.out_dir).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)

    csv_path = out_dir / export_filename(ns.start, ns.end, grouped=ns.grouped)
    csv_path.write_text(
        render_csv(readings, limits, medications, grouped=ns.grouped),
        encoding="utf-8",
    )
    html_path = csv_path.with_suffix(".html")
    html_path.write_text(
        render_html(
            readings,
            limits,
            ns.start,
            ns.end,
            medications=medications,
            grouped=ns.grouped,
            window_readings=window,
        ),
        encoding="utf-8",
    )

    print(f"OK: Readings file: {ns.readings}")
    print(f"OK: CSV: {csv_path}")
    print(f"OK: HTML: {html_path}")
    if ns.xlsx:
        xlsx_path = csv_path.with_suffix(".xlsx")
        write_report_xlsx(readings, limits, xlsx_path, ExcelLayout(), grouped=ns.grouped)
        print(f"OK: XLSX: {xlsx_path}")
    return 0
