"""Classes base para fontes de dados (snapshot já consultado)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourcePaths:
    """Files of one exported snapshot."""

    readings: Path
    limits: Path | None = None
    medications: Path | None = None

    def configured(self) -> list[Path]:
        """Paths that were configured (may or may not exist)."""
        return [p for p in (self.readings, self.limits, self.medications) if p]


class DataSource(ABC):
    """Abstract data source."""

    def __init__(self, paths: SourcePaths) -> None:
        """Create a data source.

        Args:
            paths: Snapshot file paths.
        """
        self._paths = paths

    @abstractmethod
    def validate(self) -> None:
        """Validate that required files exist.

        Raises:
            FileNotFoundError: If required files are missing.
        """
