"""Per-page conversation records, storage and session flow."""

from page_chat.conversation.models import ConversationRecord, Message, page_key
from page_chat.conversation.session import (
    ChatSession,
    clear_history,
    clear_page,
    index_page,
    index_url,
    open_session,
    submit_question,
)
from page_chat.conversation.store import ConversationStore

__all__ = [
    "ChatSession",
    "ConversationRecord",
    "ConversationStore",
    "Message",
    "clear_history",
    "clear_page",
    "index_page",
    "index_url",
    "open_session",
    "page_key",
    "submit_question",
]
