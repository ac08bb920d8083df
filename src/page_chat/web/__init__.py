"""Server-side web page fetching."""

from page_chat.web.fetcher import WebFetcher

__all__ = ["WebFetcher"]
