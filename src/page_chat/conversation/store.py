"""Per-page conversation persistence on top of a key-value backend."""

from __future__ import annotations

import logging

from page_chat.conversation.models import (
    HISTORY_PREFIX,
    ConversationRecord,
    page_key,
    storage_key,
    url_from_storage_key,
)
from page_chat.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)


class ConversationStore:
    """Load, save and clear conversation records keyed by page.

    Keys passed in may be full URLs; the fragment is dropped before lookup.
    Every save writes the marker-normalized message list, and the in-memory
    record is only updated once the write has succeeded.

    Args:
        kv: Backend holding the flat key -> record mapping.
        prefix: Namespace for page-history keys in the backend.
    """

    def __init__(self, kv: BaseKeyValueStore, prefix: str = HISTORY_PREFIX):
        self.kv = kv
        self.prefix = prefix

    async def load(self, key: str) -> ConversationRecord:
        """Record for ``key``; an empty record when the page is unknown."""
        data = await self.kv.get(storage_key(key, self.prefix))
        if data is None:
            return ConversationRecord(key=page_key(key))
        return ConversationRecord.from_dict(key, data)

    async def save(self, key: str, record: ConversationRecord) -> ConversationRecord:
        """Overwrite the stored record for ``key``.

        Raises:
            StorageError: If the backend write fails. ``record`` is left as it was.
        """
        normalized = ConversationRecord(
            key=page_key(key),
            messages=list(record.messages),
            snapshot=record.snapshot,
        ).normalized()
        await self.kv.set(storage_key(key, self.prefix), record.to_dict(normalized))
        record.key = page_key(key)
        record.messages = normalized
        return record

    async def load_all(self) -> list[ConversationRecord]:
        """Every stored page history that has a snapshot."""
        items = await self.kv.get_all()
        records = []
        for key, data in items.items():
            if not key.startswith(self.prefix):
                continue
            record = ConversationRecord.from_dict(url_from_storage_key(key, self.prefix), data)
            if record.snapshot is None:
                logger.debug("Skipping history entry without snapshot: %s", key)
                continue
            records.append(record)
        return records

    async def clear_one(self, key: str) -> ConversationRecord:
        """Drop the messages for ``key`` but keep its snapshot."""
        record = await self.load(key)
        record.messages = []
        return await self.save(key, record)

    async def clear_all(self) -> None:
        """Delete every record in the backend."""
        await self.kv.clear()
