"""Tests for exception hierarchy."""

from page_chat.exceptions import (
    BlockedURLError,
    ExtractionError,
    PageChatError,
    ProviderError,
    StorageError,
    ValidationError,
    WebFetchError,
)


def test_all_inherit_from_base():
    for exc_class in [
        ValidationError, BlockedURLError,
        ProviderError,
        ExtractionError,
        StorageError,
        WebFetchError,
    ]:
        assert issubclass(exc_class, PageChatError)


def test_blocked_url_is_validation_error():
    assert issubclass(BlockedURLError, ValidationError)


def test_provider_error_keeps_status():
    e = ProviderError("API error: quota", status_code=429)
    assert str(e) == "API error: quota"
    assert e.status_code == 429


def test_exception_message():
    e = StorageError("disk full")
    assert str(e) == "disk full"
