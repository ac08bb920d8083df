"""Page content sanitization, extraction and redaction."""

from page_chat.content.extractor import build_snapshot, extract, fallback_snapshot
from page_chat.content.models import PageSnapshot
from page_chat.content.redact import redact

__all__ = [
    "build_snapshot",
    "extract",
    "fallback_snapshot",
    "PageSnapshot",
    "redact",
]
