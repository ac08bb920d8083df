"""Data models for per-page conversations."""

from __future__ import annotations

from dataclasses import dataclass, field

from page_chat.content.models import PageSnapshot

HISTORY_PREFIX = "pagechat_"

MARKER_KIND = "page-indexed-link"
ERROR_KIND = "error"
MARKER_CONTENT = "Page indexed successfully!"
NO_TITLE = "(No title)"

TURN_ROLES = ("user", "bot")


def page_key(url: str) -> str:
    """Identity of a page for history purposes: its URL without the fragment."""
    return (url or "").split("#", 1)[0]


def storage_key(key: str, prefix: str = HISTORY_PREFIX) -> str:
    return f"{prefix}{page_key(key)}"


def url_from_storage_key(key: str, prefix: str = HISTORY_PREFIX) -> str:
    return key[len(prefix):] if key.startswith(prefix) else key


@dataclass
class Message:
    """One chat entry."""

    role: str  # "user" | "bot" | "system"
    content: str
    kind: str | None = None  # "page-indexed-link" | "error"
    url: str | None = None
    title: str | None = None

    @property
    def is_marker(self) -> bool:
        return self.kind == MARKER_KIND

    @property
    def is_turn(self) -> bool:
        return self.role in TURN_ROLES

    @property
    def is_error(self) -> bool:
        return self.kind == ERROR_KIND

    def to_dict(self) -> dict:
        data = {"role": self.role, "content": self.content}
        for name in ("kind", "url", "title"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        return cls(
            role=str(data.get("role") or "system"),
            content=str(data.get("content") or ""),
            kind=data.get("kind"),
            url=data.get("url"),
            title=data.get("title"),
        )


def marker_message(url: str, title: str | None) -> Message:
    return Message(
        role="system",
        content=MARKER_CONTENT,
        kind=MARKER_KIND,
        url=url,
        title=title or NO_TITLE,
    )


def normalize_marker(messages: list[Message], url: str, title: str | None) -> list[Message]:
    """Return a new list where the "page indexed" marker obeys its invariant.

    The marker sits at index 0 exactly when the conversation holds no user or
    bot message, and always reflects the given page ``url`` and ``title``.
    Stale markers anywhere else in the list are dropped.
    """
    rest = [m for m in messages if not m.is_marker]
    if any(m.is_turn for m in rest):
        return rest
    return [marker_message(url, title), *rest]


@dataclass
class ConversationRecord:
    """Message log and page snapshot stored under one page key."""

    key: str
    messages: list[Message] = field(default_factory=list)
    snapshot: PageSnapshot | None = None

    @property
    def url(self) -> str:
        return page_key(self.key)

    @property
    def title(self) -> str:
        if self.snapshot and self.snapshot.title:
            return self.snapshot.title
        return NO_TITLE

    def has_turns(self) -> bool:
        return any(m.is_turn for m in self.messages)

    def turns(self) -> list[Message]:
        return [m for m in self.messages if m.is_turn]

    def normalized(self) -> list[Message]:
        return normalize_marker(self.messages, self.url, self.title)

    def normalize(self) -> None:
        self.messages = self.normalized()

    def append_user(self, content: str) -> Message:
        return self._append(Message(role="user", content=content))

    def append_bot(self, content: str) -> Message:
        return self._append(Message(role="bot", content=content))

    def append_error(self, error: str) -> Message:
        return self._append(Message(role="bot", content=f"Error: {error}", kind=ERROR_KIND))

    def _append(self, message: Message) -> Message:
        self.messages.append(message)
        self.normalize()
        return message

    def to_dict(self, messages: list[Message] | None = None) -> dict:
        source = self.messages if messages is None else messages
        return {
            "conversation": [m.to_dict() for m in source],
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
        }

    @classmethod
    def from_dict(cls, key: str, data: dict | None) -> ConversationRecord:
        data = data if isinstance(data, dict) else {}
        messages = [
            Message.from_dict(m)
            for m in data.get("conversation") or []
            if isinstance(m, dict)
        ]
        return cls(
            key=page_key(key),
            messages=messages,
            snapshot=PageSnapshot.from_dict(data.get("snapshot")),
        )
