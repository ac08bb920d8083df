"""Relay client, plus the FastAPI relay server in ``page_chat.relay.app``."""

from page_chat.relay.client import RelayClient

__all__ = ["RelayClient"]
