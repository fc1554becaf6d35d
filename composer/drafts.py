"""
Draft state service.

Tracks tools that were created but never saved for the first time.
Drafts are hidden from library listings until marked saved.

The store is injected rather than read from ambient global state:
MemoryStorage for tests, JsonFileStorage for the CLI.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_KEY = "unsavedToolIds"

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class KeyValueStorage:
    """
    Abstract key-value interface.
    Values are JSON-serialisable.
    """

    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """Single JSON object on disk, rewritten on every change."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("drafts: unreadable store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


# ---------------------------------------------------------------------------
# Draft store
# ---------------------------------------------------------------------------


class DraftStore:
    """Set of tool ids that have not been saved yet."""

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_KEY):
        self._storage = storage
        self._key = key

    def list_drafts(self) -> list[int]:
        raw = self._storage.get(self._key)
        if raw is None:
            return []
        if not isinstance(raw, list) or not all(isinstance(i, int) for i in raw):
            logger.error("drafts: ignoring malformed value under %r: %r", self._key, raw)
            return []
        return list(raw)

    def mark_draft(self, tool_id: int) -> None:
        ids = self.list_drafts()
        if tool_id not in ids:
            ids.append(tool_id)
            self._storage.set(self._key, ids)

    def mark_saved(self, tool_id: int) -> None:
        ids = self.list_drafts()
        self._storage.set(self._key, [i for i in ids if i != tool_id])

    def is_draft(self, tool_id: int) -> bool:
        return tool_id in self.list_drafts()

    def clear(self) -> None:
        self._storage.delete(self._key)

    def hide_drafts(self, items: Iterable[T], key: Callable[[T], int]) -> list[T]:
        """Drop items whose id is still a draft, keeping order."""
        drafts = set(self.list_drafts())
        return [item for item in items if key(item) not in drafts]
