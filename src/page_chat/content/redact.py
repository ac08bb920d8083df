"""Best-effort pattern scrubbing of personal data in page text."""

from __future__ import annotations

import re

# Applied top to bottom. Specific patterns must run before the generic
# long-digit rule so a card number is not split into [NUMBER] fragments.
REDACTION_RULES: list[tuple[str, re.Pattern[str], str]] = [
    ("email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII), "[EMAIL]"),
    ("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b", re.ASCII), "[SSN]"),
    ("credit_card", re.compile(r"\b\d{4}[ -]?\d{4}[ -]?\d{4}[ -]?\d{4}\b", re.ASCII), "[CREDIT_CARD]"),
    ("phone", re.compile(r"\b\d{3}[ -]?\d{3}[ -]?\d{4}\b", re.ASCII), "[PHONE]"),
    ("number", re.compile(r"\b\d{10,}\b", re.ASCII), "[NUMBER]"),
    ("iban", re.compile(r"\b[A-Z]{2}\d{2}[A-Z0-9]{10,30}\b", re.ASCII), "[IBAN]"),
    ("ip_address", re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b", re.ASCII), "[IP_ADDRESS]"),
]


def redact(text: str) -> str:
    """Replace emails, card numbers, phone numbers and similar tokens with placeholders."""
    if not text:
        return text or ""
    for _name, pattern, placeholder in REDACTION_RULES:
        text = pattern.sub(placeholder, text)
    return text
