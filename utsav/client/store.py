"""
Persisted key/value store.

Holds the same plain string entries a browser keeps in local storage:
current organization, unlock markers, selected festival, preferences,
device id and the account session.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class LocalStore:
    """
    String-valued store, optionally mirrored to a JSON file.

    Every write is flushed to disk immediately, so callers that update
    memory and the store in the same step never see the two diverge.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else None
        self._data: dict[str, str] = {}
        if self._path and self._path.exists():
            try:
                loaded = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.warning("store_unreadable", path=str(self._path))
                loaded = {}
            if isinstance(loaded, dict):
                self._data = {str(k): str(v) for k, v in loaded.items()}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def get_json(self, key: str) -> Any:
        """
        Decode a JSON entry.

        Returns None when the key is missing. A corrupt entry is removed and
        None returned.
        """
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("store_entry_corrupt", key=key)
            self.remove(key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, default=str))

    def keys(self) -> list[str]:
        return list(self._data)

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
