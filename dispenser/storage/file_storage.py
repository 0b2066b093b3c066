"""
Key/Value Storage

The level store only needs get/set on string values. The host picks the
medium at construction time:
- JsonFileStorage: all keys in one JSON document on disk
- InMemoryStorage: plain dict, for tests and embedding
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from dispenser.errors import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Durable string storage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryStorage:
    """Dictionary-backed storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Local file storage.

    Every key lives in a single JSON object:
        {"cocktail-ingredient-levels": "[...]", "cocktail-ingredient-levels-version": "2.1"}

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write leaves the previous document intact.
    """

    def __init__(self, path: Union[str, Path] = "./data/ingredient_levels.json"):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable storage file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a JSON object, ignoring")
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            logger.error(f"Failed to write storage file {self.path}: {e}")
            raise PersistenceError(f"Could not write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
