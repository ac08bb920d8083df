"""Tests for the redaction filter."""

import pytest

from page_chat.content.redact import REDACTION_RULES, redact


@pytest.mark.parametrize("email", ["a@b.com", "jane.doe+news@mail.example.org", "X_Y@corp.io"])
def test_email_redacted(email):
    result = redact(f"Contact {email} for details")
    assert "[EMAIL]" in result
    assert email not in result


def test_ssn():
    assert redact("SSN 123-45-6789 on file") == "SSN [SSN] on file"


@pytest.mark.parametrize("card", ["4111111111111111", "4111 1111 1111 1111", "4111-1111-1111-1111"])
def test_credit_card(card):
    assert redact(f"card {card} ok") == "card [CREDIT_CARD] ok"


@pytest.mark.parametrize("phone", ["5551234567", "555 123 4567", "555-123-4567"])
def test_phone(phone):
    assert redact(f"call {phone} now") == "call [PHONE] now"


def test_long_number():
    assert redact("order 123456789012 shipped") == "order [NUMBER] shipped"


def test_card_redacted_before_generic_number():
    result = redact("pay 4111 1111 1111 1111 ref 123456789012")
    assert result == "pay [CREDIT_CARD] ref [NUMBER]"
    assert result.count("[NUMBER]") == 1


def test_iban():
    assert redact("IBAN DE89370400440532013000.") == "IBAN [IBAN]."


def test_ip_address():
    assert redact("server at 192.168.1.5 responded") == "server at [IP_ADDRESS] responded"


def test_short_numbers_untouched():
    text = "Chapter 12 of 300 pages, printed 2024-05-01"
    assert redact(text) == text


def test_does_not_cross_lines():
    result = redact("555\n123\n4567")
    assert "[PHONE]" not in result


def test_empty():
    assert redact("") == ""


def test_rule_order():
    names = [name for name, _, _ in REDACTION_RULES]
    assert names == ["email", "ssn", "credit_card", "phone", "number", "iban", "ip_address"]
