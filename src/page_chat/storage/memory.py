"""In-process key-value store, mainly for tests and one-shot CLI runs."""

from __future__ import annotations

import json
from typing import Any

from page_chat.exceptions import StorageError
from page_chat.storage.base import BaseKeyValueStore


class MemoryKeyValueStore(BaseKeyValueStore):
    """Dict-backed store that round-trips values through JSON like a real backend."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = self._encode(value)

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def get_all(self) -> dict[str, Any]:
        return {key: json.loads(raw) for key, raw in self._data.items()}

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = self._encode(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    @staticmethod
    def _encode(value: Any) -> str:
        try:
            return json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value is not JSON-serializable: {e}") from e
