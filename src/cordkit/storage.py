"""
Persistence of JSON-like documents.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class DataIO(ABC):
    """Loads and saves one document."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load the document, an empty dict if nothing was saved yet."""

    @abstractmethod
    def save(self, data: dict[str, Any]) -> None:
        pass


class JsonFileIO(DataIO):
    """
    A document stored as a JSON file.

    Params:
        path: The file path; parent directories are created on save
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as f:
            return json.load(f)

    def save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.debug("Saved %s", self.path)

    def __repr__(self) -> str:
        return f"JsonFileIO({str(self.path)!r})"


class MemoryIO(DataIO):
    """A document kept in memory, mostly for tests."""

    def __init__(self, data: dict[str, Any] | None = None):
        self.data = data
        self.saves = 0

    def load(self) -> dict[str, Any]:
        return json.loads(json.dumps(self.data)) if self.data is not None else {}

    def save(self, data: dict[str, Any]) -> None:
        self.data = json.loads(json.dumps(data))
        self.saves += 1


def data_file_io(data_directory: str | Path, name: str) -> JsonFileIO:
    """Create a JSON file IO for a file below the data directory."""
    return JsonFileIO(Path(data_directory) / name)
