"""Tests for conversation persistence."""

import asyncio

import pytest

from page_chat.content.models import PageSnapshot
from page_chat.conversation.models import ConversationRecord
from page_chat.conversation.store import ConversationStore
from page_chat.exceptions import StorageError
from page_chat.storage.memory import MemoryKeyValueStore

URL = "https://example.com/a"


def _snapshot(title="A"):
    return PageSnapshot(title=title, structured=f"# Page Title\n{title}")


def test_load_unknown_page_is_empty():
    store = ConversationStore(MemoryKeyValueStore())
    record = asyncio.run(store.load(URL))
    assert record.key == URL
    assert record.messages == []
    assert record.snapshot is None


def test_save_and_load_round_trip():
    kv = MemoryKeyValueStore()
    store = ConversationStore(kv)
    record = ConversationRecord(key=URL, snapshot=_snapshot())
    record.append_user("q")
    record.append_bot("a")

    asyncio.run(store.save(URL, record))
    loaded = asyncio.run(store.load(URL + "#comments"))

    assert [(m.role, m.content) for m in loaded.messages] == [("user", "q"), ("bot", "a")]
    assert loaded.snapshot.title == "A"
    assert asyncio.run(kv.get("pagechat_" + URL)) is not None


def test_save_writes_marker_for_empty_conversation():
    kv = MemoryKeyValueStore()
    store = ConversationStore(kv)
    record = ConversationRecord(key=URL, snapshot=_snapshot("Title"))
    asyncio.run(store.save(URL, record))

    stored = asyncio.run(kv.get("pagechat_" + URL))
    assert stored["conversation"][0]["kind"] == "page-indexed-link"
    assert stored["conversation"][0]["title"] == "Title"
    assert record.messages[0].is_marker


def test_load_all_filters_prefix_and_missing_snapshot():
    kv = MemoryKeyValueStore({
        "pagechat_https://a.com": {"conversation": [], "snapshot": {"title": "A", "structured": "x"}},
        "pagechat_https://b.com": {"conversation": [], "snapshot": None},
        "settings": {"theme": "dark"},
    })
    records = asyncio.run(ConversationStore(kv).load_all())
    assert [r.key for r in records] == ["https://a.com"]


def test_clear_one_keeps_snapshot():
    store = ConversationStore(MemoryKeyValueStore())
    record = ConversationRecord(key=URL, snapshot=_snapshot())
    record.append_user("q")
    asyncio.run(store.save(URL, record))

    cleared = asyncio.run(store.clear_one(URL))
    assert cleared.snapshot.title == "A"
    assert len(cleared.messages) == 1
    assert cleared.messages[0].is_marker

    reloaded = asyncio.run(store.load(URL))
    assert reloaded.snapshot is not None
    assert not reloaded.has_turns()


def test_clear_all_removes_everything():
    kv = MemoryKeyValueStore({"pagechat_x": {"conversation": []}, "other": 1})
    asyncio.run(ConversationStore(kv).clear_all())
    assert asyncio.run(kv.get_all()) == {}


class FailingStore(MemoryKeyValueStore):
    async def set(self, key, value):
        raise StorageError("disk full")


def test_failed_save_leaves_record_untouched():
    store = ConversationStore(FailingStore())
    record = ConversationRecord(key=URL)
    with pytest.raises(StorageError):
        asyncio.run(store.save(URL, record))
    assert record.messages == []
