"""
Amount and rate parsing.

Supported formats:
- Amounts: 1.234,56 (German), 1,234.56 (English), 1234.56, 12,50
  (two decimals by default; 0 for JPY style, 3 for KWD style)
- Credits: -12.50, (12.50), 12.50 CR
- Rates: 0.92, 0,92, 1.0850
"""

import re
from decimal import Decimal

DEFAULT_DECIMAL_DIGITS = 2

_GROUPED_INTEGER = r"(?:\d{1,3}(?:[.,]\d{3})+|\d+)"


def amount_pattern(digits: int = DEFAULT_DECIMAL_DIGITS) -> str:
    """
    Regex for an unsigned amount with exactly ``digits`` decimals.

    With decimals, the last "." or "," is the decimal separator. Without
    decimals every "." or "," is a thousands separator.
    """
    if digits == 0:
        return _GROUPED_INTEGER
    return rf"{_GROUPED_INTEGER}[.,]\d{{{digits}}}"


def signed_amount_pattern(digits: int = DEFAULT_DECIMAL_DIGITS) -> str:
    """Signed amount as it appears on a line; groups are read by amount_from_match."""
    return (
        r"(?P<sign>[-−])?(?P<open>\()?"
        r"(?P<amount>" + amount_pattern(digits) + r")"
        r"(?P<close>\))?(?:\s?(?P<credit>CR)\b)?"
    )


RATE_PATTERN = r"\d+(?:[.,]\d+)?"

_SEPARATORS = re.compile(r"[.,]")


def parse_german_amount(amount_str: str) -> Decimal:
    """Parse German format amount (1.234,56) to Decimal."""
    cleaned = amount_str.replace(".", "").replace(",", ".")
    return Decimal(cleaned)


def parse_english_amount(amount_str: str) -> Decimal:
    """Parse English format amount (1,234.56) to Decimal."""
    cleaned = amount_str.replace(",", "")
    return Decimal(cleaned)


def parse_amount(amount_str: str, digits: int = DEFAULT_DECIMAL_DIGITS) -> Decimal:
    """
    Parse an amount whose format is decided by its decimal separator.

    The separator is the character ``digits + 1`` places from the end; every
    other "." or "," is a thousands separator. With ``digits=0`` all of them
    are.

    Raises:
        decimal.InvalidOperation: If the string is not a number.
    """
    amount_str = amount_str.strip()
    if digits and len(amount_str) > digits + 1:
        separator = amount_str[-(digits + 1)]
        if separator == ",":
            return parse_german_amount(amount_str)
        if separator == ".":
            return parse_english_amount(amount_str)
    return Decimal(_SEPARATORS.sub("", amount_str))


def amount_from_match(match: re.Match, digits: int = DEFAULT_DECIMAL_DIGITS) -> Decimal:
    """Signed Decimal from a match of signed_amount_pattern(digits)."""
    amount = parse_amount(match.group("amount"), digits)
    negative = bool(match.group("sign")) or bool(match.group("credit"))
    if match.group("open") and match.group("close"):
        negative = True
    return -amount if negative else amount


def parse_rate(rate_str: str) -> Decimal:
    """Parse an exchange rate; a comma is always a decimal separator."""
    return Decimal(rate_str.replace(",", "."))
