"""Abstract base class for key-value storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseKeyValueStore(ABC):
    """Asynchronous flat key -> JSON value store.

    Values must be JSON-serializable. Implementations return copies, so
    mutating a value read from the store never changes what is persisted.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Value stored under ``key``, or None."""
        ...

    @abstractmethod
    async def get_all(self) -> dict[str, Any]:
        """Every key and value in the store."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Overwrite the value under ``key``."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key."""
        ...
