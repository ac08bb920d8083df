"""Static description of every supported LLM provider.

Each provider is selected by exact name and carries, as data, the relay
endpoint it is reached through, the shape of its request body, the name it
uses for the assistant role and the accessor paths for the answer text.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

from page_chat.exceptions import ValidationError

NO_ANSWER = "No answer."


class ProviderName(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    GROK = "grok"
    GENERIC = "generic"


class RequestShape(str, Enum):
    CHAT_COMPLETIONS = "chat-completions"
    CONTENT_GENERATION = "content-generation"
    MESSAGES = "messages"
    GENERIC = "generic"


@dataclass(frozen=True)
class ProviderConfig:
    """How to talk to one provider.

    ``endpoint`` is relative to the relay base URL, except for the generic
    provider which posts straight to an absolute URL.
    """

    name: ProviderName
    label: str
    endpoint: str
    request_shape: RequestShape
    assistant_role: str
    response_paths: tuple[tuple[str | int, ...], ...]
    model: str | None = None
    max_tokens: int = 512
    temperature: float = 0.2
    api_key: str | None = None

    @property
    def via_relay(self) -> bool:
        return self.name is not ProviderName.GENERIC


PROVIDERS: dict[ProviderName, ProviderConfig] = {
    ProviderName.OPENAI: ProviderConfig(
        name=ProviderName.OPENAI,
        label="OpenAI",
        endpoint="/api/openai",
        request_shape=RequestShape.CHAT_COMPLETIONS,
        assistant_role="assistant",
        response_paths=(("choices", 0, "message", "content"),),
        model=os.environ.get("PAGECHAT_OPENAI_MODEL", "gpt-4o-mini"),
    ),
    ProviderName.GROK: ProviderConfig(
        name=ProviderName.GROK,
        label="Grok",
        endpoint="/api/grok",
        request_shape=RequestShape.CHAT_COMPLETIONS,
        assistant_role="assistant",
        response_paths=(("choices", 0, "message", "content"),),
        model=os.environ.get("PAGECHAT_GROK_MODEL", "grok-3"),
    ),
    ProviderName.GEMINI: ProviderConfig(
        name=ProviderName.GEMINI,
        label="Gemini",
        endpoint="/api/gemini",
        request_shape=RequestShape.CONTENT_GENERATION,
        assistant_role="model",
        response_paths=(("candidates", 0, "content", "parts", 0, "text"),),
    ),
    ProviderName.ANTHROPIC: ProviderConfig(
        name=ProviderName.ANTHROPIC,
        label="Claude",
        endpoint="/api/anthropic",
        request_shape=RequestShape.MESSAGES,
        assistant_role="assistant",
        response_paths=(("content", 0, "text"),),
        model=os.environ.get("PAGECHAT_ANTHROPIC_MODEL", "claude-haiku-4-5-20251001"),
    ),
    ProviderName.GENERIC: ProviderConfig(
        name=ProviderName.GENERIC,
        label="Generic",
        endpoint=os.environ.get("PAGECHAT_GENERIC_ENDPOINT", ""),
        request_shape=RequestShape.GENERIC,
        assistant_role="assistant",
        response_paths=(("answer",), ("result",)),
        api_key=os.environ.get("PAGECHAT_GENERIC_API_KEY"),
    ),
}

RELAY_PROVIDERS = tuple(p for p in ProviderName if p is not ProviderName.GENERIC)


def get_provider(name: str | ProviderName) -> ProviderConfig:
    """Look up a provider by its exact name.

    Raises:
        ValidationError: If ``name`` is not one of the supported providers.
    """
    try:
        key = ProviderName(name)
    except ValueError:
        supported = ", ".join(p.value for p in ProviderName)
        raise ValidationError(f"Unknown provider {name!r}. Supported: {supported}") from None
    return PROVIDERS[key]


def extract_answer(data: Any, paths: tuple[tuple[str | int, ...], ...]) -> str:
    """Follow the first accessor path that ends in a non-empty string.

    Returns ``NO_ANSWER`` when no path matches, so callers always have text
    to show.
    """
    for path in paths:
        value = _follow(data, path)
        if isinstance(value, str) and value:
            return value.strip()
    return NO_ANSWER


def _follow(data: Any, path: tuple[str | int, ...]) -> Any:
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict) or step not in current:
            return None
        current = current[step]
    return current
