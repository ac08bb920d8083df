"""Unified exception hierarchy for page-chat."""


class PageChatError(Exception):
    """Base exception for all page-chat errors."""


# Input
class ValidationError(PageChatError):
    """Bad URL, missing required field or rejected request."""


class BlockedURLError(ValidationError):
    """URL points at a scheme or host that may not be fetched."""


# Providers
class ProviderError(PageChatError):
    """Provider call failed (network, timeout, non-2xx or malformed body)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# Content
class ExtractionError(PageChatError):
    """HTML could not be parsed into a page snapshot."""


# Storage
class StorageError(PageChatError):
    """Key-value storage read or write failed."""


# Web
class WebFetchError(PageChatError):
    """Failed to fetch web content."""
