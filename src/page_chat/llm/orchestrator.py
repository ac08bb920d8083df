"""Build provider requests for a page question and normalize the answers."""

from __future__ import annotations

import logging
from typing import Any

from page_chat.content.models import PageSnapshot
from page_chat.content.redact import redact
from page_chat.conversation.models import Message
from page_chat.exceptions import ValidationError
from page_chat.llm.prompts import build_system_prompt
from page_chat.llm.providers import NO_ANSWER, ProviderConfig, RequestShape, extract_answer
from page_chat.relay.client import RelayClient

logger = logging.getLogger(__name__)

MAX_HISTORY = 10


def history_messages(history: list[Message], provider: ProviderConfig) -> list[dict]:
    """Prior user/bot turns in the provider's role names, most recent ``MAX_HISTORY`` only.

    The "page indexed" marker, system entries and error bubbles are dropped.
    """
    turns = [m for m in history if m.is_turn and not m.is_error]
    mapped = []
    for message in turns[-MAX_HISTORY:]:
        role = provider.assistant_role if message.role == "bot" else "user"
        if provider.request_shape is RequestShape.CONTENT_GENERATION:
            mapped.append({"role": role, "parts": [{"text": message.content}]})
        else:
            mapped.append({"role": role, "content": message.content})
    return mapped


def build_request(
    question: str,
    snapshot: PageSnapshot | None,
    history: list[Message],
    provider: ProviderConfig,
    cross_page_context: str | None = None,
) -> dict[str, Any]:
    """Provider-native request body for one question."""
    page_content = redact(snapshot.structured) if snapshot else ""
    system_prompt = build_system_prompt(page_content, cross_page_context)
    prior = history_messages(history, provider)

    if provider.request_shape is RequestShape.CHAT_COMPLETIONS:
        return {
            "model": provider.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                *prior,
                {"role": "user", "content": question},
            ],
            "max_tokens": provider.max_tokens,
            "temperature": provider.temperature,
        }
    if provider.request_shape is RequestShape.CONTENT_GENERATION:
        return {
            "contents": [
                *prior,
                {"role": "user", "parts": [{"text": f"{system_prompt}\n\n{question}"}]},
            ],
            "generationConfig": {
                "temperature": provider.temperature,
                "maxOutputTokens": provider.max_tokens,
            },
        }
    if provider.request_shape is RequestShape.MESSAGES:
        # No system field: the page context travels as the first user turn.
        return {
            "model": provider.model,
            "max_tokens": provider.max_tokens,
            "temperature": provider.temperature,
            "messages": [
                {"role": "user", "content": system_prompt},
                *prior,
                {"role": "user", "content": question},
            ],
        }
    return {
        "prompt": question,
        "context": system_prompt,
    }


class ChatOrchestrator:
    """Answer questions about a page through the relay.

    Exactly one HTTP call is made per :meth:`ask`; there are no retries and no
    timeout beyond what the relay and HTTP layer enforce.

    Args:
        relay: Client for the relay (and, for the generic provider, the
            provider URL itself).
    """

    def __init__(self, relay: RelayClient | None = None):
        self.relay = relay or RelayClient()

    async def ask(
        self,
        question: str,
        snapshot: PageSnapshot | None,
        history: list[Message],
        provider: ProviderConfig,
        cross_page_context: str | None = None,
    ) -> str:
        """Ask ``question`` about the page and return the answer text.

        Returns ``"No answer."`` when the provider replies without the expected
        answer field.

        Raises:
            ValidationError: If the question is empty or the provider has no endpoint.
            ProviderError: On network/HTTP failure or a non-JSON response.
        """
        if not question or not question.strip():
            raise ValidationError("Question is required")
        if not provider.endpoint:
            raise ValidationError(f"No endpoint configured for provider {provider.name.value}")

        body = build_request(question, snapshot, history, provider, cross_page_context)
        headers = None
        if not provider.via_relay and provider.api_key:
            headers = {"Authorization": f"Bearer {provider.api_key}"}

        logger.info("Asking %s about page (%d prior turns)", provider.label, len(history))
        data = await self.relay.chat(provider.endpoint, body, headers=headers)
        answer = extract_answer(data, provider.response_paths)
        if answer == NO_ANSWER:
            logger.warning("%s response had no answer field", provider.label)
        return answer
