"""Per-tab chat session: the single writer for one page's conversation.

A :class:`ChatSession` replaces global UI state. Each open page gets its own
instance, and the functions here move it through indexing, question and
answer, saving to the :class:`ConversationStore` after every mutation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable

from page_chat.content.extractor import build_snapshot, fallback_snapshot
from page_chat.content.models import PageSnapshot
from page_chat.content.redact import redact
from page_chat.conversation.models import ConversationRecord, Message
from page_chat.conversation.store import ConversationStore
from page_chat.exceptions import ProviderError, ValidationError, WebFetchError

if TYPE_CHECKING:
    from page_chat.llm.orchestrator import ChatOrchestrator
    from page_chat.llm.providers import ProviderConfig
    from page_chat.relay.client import RelayClient

logger = logging.getLogger(__name__)

# (question, other pages' records) -> the page the question refers to, if any.
ReferenceResolver = Callable[[str, list[ConversationRecord]], "ConversationRecord | None"]


@dataclass
class ChatSession:
    """Conversation state for one page tab."""

    record: ConversationRecord
    is_loading: bool = False

    @property
    def page_key(self) -> str:
        return self.record.key

    def view(self) -> list[Message]:
        """Messages as they should be rendered, marker recomputed."""
        return self.record.normalized()


async def open_session(store: ConversationStore, url: str) -> ChatSession:
    """Session for ``url`` with whatever history is already stored."""
    record = await store.load(url)
    record.normalize()
    return ChatSession(record=record)


async def attach_snapshot(
    store: ConversationStore, url: str, snapshot: PageSnapshot
) -> ChatSession:
    """Replace the page snapshot for ``url`` and persist the record."""
    record = await store.load(url)
    record.snapshot = snapshot
    await store.save(record.key, record)
    return ChatSession(record=record)


async def index_page(store: ConversationStore, url: str, html: str) -> ChatSession:
    """Extract ``html`` read from the open tab and attach it to the page's record."""
    return await attach_snapshot(store, url, build_snapshot(html))


async def index_url(
    store: ConversationStore,
    relay: RelayClient,
    url: str,
    title: str | None = None,
) -> ChatSession:
    """Index a page the client could not read itself.

    The relay fetches and sanitizes the page server-side; if that fails too,
    a minimal digest built from ``title`` and ``url`` is used instead.
    """
    try:
        data = await relay.fetch_page(url)
        snapshot = PageSnapshot(title=str(data.get("title") or ""), structured=data["html"])
    except (ValidationError, WebFetchError) as e:
        logger.warning("Backend page fetch failed, using basic page info: %s", e)
        snapshot = fallback_snapshot(title, url)
    return await attach_snapshot(store, url, snapshot)


def format_reference(record: ConversationRecord) -> str:
    """Context block for a second page mentioned in the question."""
    structured = redact(record.snapshot.structured) if record.snapshot else ""
    return f"Referenced Page ({record.title}):\n{structured}"


async def submit_question(
    session: ChatSession,
    question: str,
    store: ConversationStore,
    orchestrator: ChatOrchestrator,
    provider: ProviderConfig,
    is_current: Callable[[str], bool] | None = None,
    resolve_reference: ReferenceResolver | None = None,
) -> Message | None:
    """Ask one question and record the answer.

    The question is appended and saved before the provider is called; the
    answer, or an error bubble for a provider failure, is appended and saved
    afterwards. When ``is_current`` says the tab has moved to another page in
    the meantime, the answer is discarded and None is returned.

    Cross-page references are off unless ``resolve_reference`` is given.

    Raises:
        ValidationError: If the question is empty or another one is in flight.
        StorageError: If a save fails. ``session.record`` then still holds
            what was last saved.
    """
    question = (question or "").strip()
    if not question:
        raise ValidationError("Question is required")
    if session.is_loading:
        raise ValidationError("A question is already being answered for this page")

    key = session.page_key
    history = session.record.turns()

    session.is_loading = True
    try:
        await _commit(session, store, lambda draft: draft.append_user(question))

        cross_page_context = None
        if resolve_reference is not None:
            others = [r for r in await store.load_all() if r.key != key]
            referenced = resolve_reference(question, others)
            if referenced is not None and referenced.snapshot is not None:
                cross_page_context = format_reference(referenced)

        try:
            answer = await orchestrator.ask(
                question, session.record.snapshot, history, provider, cross_page_context
            )
        except ProviderError as e:
            if not _still_current(is_current, key):
                return None
            logger.warning("%s request failed: %s", provider.label, e)
            error = str(e)
            return await _commit(session, store, lambda draft: draft.append_error(error))

        if not _still_current(is_current, key):
            return None
        return await _commit(session, store, lambda draft: draft.append_bot(answer))
    finally:
        session.is_loading = False


async def clear_page(store: ConversationStore, session: ChatSession) -> ChatSession:
    """Forget this page's messages; its snapshot stays so it can still be asked about."""
    session.record = await store.clear_one(session.page_key)
    return session


async def clear_history(store: ConversationStore) -> None:
    await store.clear_all()


async def _commit(
    session: ChatSession,
    store: ConversationStore,
    append: Callable[[ConversationRecord], Message],
) -> Message:
    draft = replace(session.record, messages=list(session.record.messages))
    message = append(draft)
    await store.save(draft.key, draft)
    session.record = draft
    return message


def _still_current(is_current: Callable[[str], bool] | None, key: str) -> bool:
    if is_current is None or is_current(key):
        return True
    logger.info("Page changed while waiting for an answer; discarding it")
    return False
