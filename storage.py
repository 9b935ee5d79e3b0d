"""Storage capability for saved Yacht games.

The coordinator is handed a Storage rather than reaching for a file itself,
so game logic runs the same with a JSON directory, an in-memory dict, or no
storage at all. Snapshots are plain JSON-safe dicts.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


def _default_dir() -> Path:
    """Return the default directory for saved games."""
    return Path.home() / ".yacht"


class Storage(ABC):
    """Key/value store for game snapshots."""

    @abstractmethod
    def load(self, key: str) -> dict | None:
        """Return the snapshot stored under key, or None if there isn't a usable one."""

    @abstractmethod
    def save(self, key: str, snapshot: dict) -> None:
        """Store snapshot under key, replacing any previous one."""

    def delete(self, key: str) -> None:
        """Forget the snapshot under key. Missing keys are ignored."""


class MemoryStorage(Storage):
    """Storage kept in a dict. Snapshots are copied through JSON on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, key: str) -> dict | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, snapshot: dict) -> None:
        self._data[key] = json.dumps(snapshot)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(Storage):
    """One JSON file per key inside a directory.

    Reads of missing or corrupt files return None. Writes are atomic
    (temp file + os.replace) and best-effort: failures are logged, never raised.
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory) if directory is not None else _default_dir()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> dict | None:
        path = self.path_for(key)
        try:
            data = json.loads(path.read_text())
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            logger.warning("Ignoring unreadable saved game at %s", path)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring saved game with unexpected shape at %s", path)
            return None
        return data

    def save(self, key: str, snapshot: dict) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            raw = json.dumps(snapshot, indent=2).encode()
            fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            closed = False
            try:
                os.write(fd, raw)
                os.close(fd)
                closed = True
                os.replace(tmp, path)
            except BaseException:
                if not closed:
                    os.close(fd)
                try:
                    os.unlink(tmp)
                except OSError:
                    pass
                raise
        except OSError:
            logger.warning("Could not save game to %s", path, exc_info=True)

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            pass
