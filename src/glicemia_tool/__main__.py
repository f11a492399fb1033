"""Ponto de entrada: ``python -m glicemia_tool``."""

from __future__ import annotations

from glicemia_tool.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
