"""Key-value stores for timer settings and statistics snapshots."""

from __future__ import annotations

import fcntl
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "studyhive"


class JsonFileStore:
    """Persists each key as ``<directory>/<key>.json``.

    Values survive process restarts.  Unreadable or corrupt entries read back
    as ``None`` so callers can fall back to their defaults.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory: Path = directory if directory is not None else DEFAULT_CONFIG_DIR

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Any | None:
        """Return the decoded value stored under *key*, or ``None``."""
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path) as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store entry %s: %s", path, exc)
            return None

    def set(self, key: str, value: Any) -> None:
        """Write *value* under *key* with an exclusive file lock."""
        self._directory.mkdir(parents=True, exist_ok=True)
        with open(self._path(key), "w") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            json.dump(value, f)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"


class MemoryStore:
    """Same interface as :class:`JsonFileStore`, kept in a dict."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        # Values are kept serialized so callers never share mutable state.
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
