"""Data models for the page content module."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Heading:
    """A heading element in document order."""

    level: int  # 1-6
    text: str


@dataclass
class PageContent:
    """Pieces pulled out of a sanitized page before rendering to markdown."""

    title: str = ""
    headings: list[Heading] = field(default_factory=list)
    lists: list[list[str]] = field(default_factory=list)
    alts: list[str] = field(default_factory=list)
    body_text: str = ""


@dataclass
class PageSnapshot:
    """Sanitized textual digest of a page at indexing time."""

    title: str
    structured: str
    raw_html_hash: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "structured": self.structured,
            "raw_html_hash": self.raw_html_hash,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> PageSnapshot | None:
        """Rebuild a snapshot; returns None for missing or empty payloads."""
        if not data or not isinstance(data, dict):
            return None
        structured = data.get("structured") or ""
        if not structured:
            return None
        return cls(
            title=str(data.get("title") or ""),
            structured=str(structured),
            raw_html_hash=data.get("raw_html_hash"),
        )
