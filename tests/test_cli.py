"""Tests for CLI entrypoints."""

from __future__ import annotations

import json
from datetime import date, time
from pathlib import Path
from typing import Any

import pytest
from openpyxl import load_workbook

from glicemia_tool import cli
from glicemia_tool.model import Condition, Reading


def _snapshot(tmp_path: Path) -> Path:
    rows = [
        {"reading_value": 90, "reading_date": "2025-12-01", "reading_time": "07:00", "condition": "jejum"},
        {"reading_value": 150, "reading_date": "2025-12-15", "reading_time": "13:00", "condition": "apos_refeicao"},
        {"reading_value": 98, "reading_date": "2025-12-16", "reading_time": "07:10", "condition": "jejum"},
        {"reading_value": 300, "reading_date": "2025-12-20", "reading_time": "07:10", "condition": "jejum"},
    ]
    p = tmp_path / "readings.json"
    p.write_text(json.dumps(rows), encoding="utf-8")
    return p


def test_parse_args_custom_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "sys.argv",
        [
            "prog",
            "--readings",
            "/tmp/r.json",
            "--start",
            "2025-12-01",
            "--end",
            "2025-12-31",
            "--grouped",
            "--out-dir",
            "/tmp/out",
        ],
    )
    ns = cli.parse_args()
    assert ns.readings == "/tmp/r.json"
    assert ns.start == date(2025, 12, 1)
    assert ns.end == date(2025, 12, 31)
    assert ns.grouped is True
    assert ns.xlsx is False
    assert ns.limits is None
    assert ns.out_dir == "/tmp/out"


def test_filter_period_is_inclusive() -> None:
    readings = [
        Reading(str(d), 100, date(2025, 12, d), time(8, 0), Condition.FASTING)
        for d in (1, 2, 3)
    ]
    got = cli.filter_period(readings, date(2025, 12, 1), date(2025, 12, 2))
    assert [r.id for r in got] == ["1", "2"]


def test_main_happy_path(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    readings = _snapshot(tmp_path)
    out_dir = tmp_path / "saidas"
    monkeypatch.setattr(
        "sys.argv",
        [
            "prog",
            "--readings",
            str(readings),
            "--start",
            "2025-12-15",
            "--end",
            "2025-12-16",
            "--xlsx",
            "--out-dir",
            str(out_dir),
        ],
    )

    code = cli.main()
    assert code == 0

    csv_path = out_dir / "glicemia-2025-12-15-ate-2025-12-16.csv"
    content = csv_path.read_text(encoding="utf-8")
    assert content.startswith("\ufeff")
    assert len([line for line in content.splitlines() if line]) == 3
    assert (out_dir / "glicemia-2025-12-15-ate-2025-12-16.html").exists()

    wb = load_workbook(out_dir / "glicemia-2025-12-15-ate-2025-12-16.xlsx")
    assert wb["Leituras"].max_row == 3

    out = capsys.readouterr().out
    assert "OK: CSV:" in out
    assert "OK: HTML:" in out
    assert "OK: XLSX:" in out


def test_main_grouped_passes_trailing_window(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    readings = _snapshot(tmp_path)
    captured: dict[str, Any] = {}

    def _render_html(*args: Any, **kwargs: Any) -> str:
        captured["readings"] = args[0]
        captured.update(kwargs)
        return "<html></html>"

    monkeypatch.setattr(cli, "render_html", _render_html)
    monkeypatch.setattr(
        "sys.argv",
        [
            "prog",
            "--readings",
            str(readings),
            "--start",
            "2025-12-15",
            "--end",
            "2025-12-16",
            "--grouped",
            "--out-dir",
            str(tmp_path / "out"),
        ],
    )

    assert cli.main() == 0
    assert captured["grouped"] is True
    assert [r.value for r in captured["readings"]] == [150, 98]
    assert [r.value for r in captured["window_readings"]] == [90, 150, 98]
    assert (tmp_path / "out" / "diario-glicemia-2025-12-15-ate-2025-12-16.csv").exists()


def test_main_propagates_validation_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(
        "sys.argv",
        [
            "prog",
            "--readings",
            str(tmp_path / "missing.json"),
            "--start",
            "2025-12-01",
            "--end",
            "2025-12-31",
            "--out-dir",
            str(tmp_path),
        ],
    )
    with pytest.raises(FileNotFoundError):
        cli.main()
