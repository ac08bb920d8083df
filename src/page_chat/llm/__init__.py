"""Provider table and chat orchestration."""

from page_chat.llm.orchestrator import ChatOrchestrator
from page_chat.llm.providers import ProviderConfig, ProviderName, get_provider

__all__ = ["ChatOrchestrator", "ProviderConfig", "ProviderName", "get_provider"]
