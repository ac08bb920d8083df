"""Key-value storage backends for conversation history."""

from page_chat.storage.base import BaseKeyValueStore
from page_chat.storage.memory import MemoryKeyValueStore
from page_chat.storage.sqlite import SqliteKeyValueStore

__all__ = ["BaseKeyValueStore", "MemoryKeyValueStore", "SqliteKeyValueStore"]
