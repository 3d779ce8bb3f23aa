"""
Declarative classification rules.

Rules are evaluated in a fixed priority order and the first match wins.
The order below is part of the classifier contract:

 1. blank          whitespace only (form feed excluded)
 2. separator      ----- / ===== / _____ / *****
 3. page_marker    "Page 2 of 3", "Seite 2/3", "(continued)", form feed
 4. subtotal       "Subtotal 100.00", "Net total", "Zwischensumme"
 5. total          "Total: 30.00", "Amount due EUR 30.00"
 6. exchange_rate  "Exchange rate: 1 USD = 0.92 EUR"
 7. title          a lone "INVOICE" / "Rechnung"
 8. header_field   "<known key>: value"
 9. foreign_entry  description + amount tagged with a non-local currency
10. local_entry    description + amount, local currency or untagged

Keyword lines (subtotal, total, exchange) and header fields are tried
before entries so "Total 30.00" or "Date: 01.02.2024" never become line
items, and currency-tagged entries are decided before the untagged
fallback.
"""

import re
from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Any, Callable, Optional

from ..config import ParserConfig
from ..schemas import LineClass
from .amounts import (
    DEFAULT_DECIMAL_DIGITS,
    RATE_PATTERN,
    amount_from_match,
    parse_rate,
    signed_amount_pattern,
)

# ISO codes recognised as currency tags in addition to the configured ones
KNOWN_CURRENCY_CODES = frozenset(
    {
        "AUD", "BRL", "CAD", "CHF", "CNY", "CZK", "DKK", "EUR", "GBP", "HKD",
        "HUF", "INR", "JPY", "KRW", "MXN", "NOK", "NZD", "PLN", "RON", "SEK",
        "SGD", "THB", "TRY", "USD", "ZAR",
    }
)

SUBTOTAL_KEYWORDS = [
    "subtotal",
    "sub-total",
    "net total",
    "net amount",
    "carried forward",
    "brought forward",
    "zwischensumme",
    "nettobetrag",
    "übertrag",
]

EXCHANGE_KEYWORDS = ["exchange rate", "fx rate", "conversion rate", "wechselkurs", "kurs"]

FieldExtractor = Callable[[re.Match], Optional[dict[str, Any]]]

_LETTER = re.compile(r"[^\W\d_]")


@dataclass(frozen=True)
class ClassificationRule:
    """
    One ordered classification rule.

    ``extract`` turns a match into captured fields. Returning None means the
    rule does not apply after all and the next rule is tried.
    """

    name: str
    line_class: LineClass
    pattern: re.Pattern
    extract: Optional[FieldExtractor] = None


def _alternation(words) -> str:
    """Regex alternation, longest first so prefixes never shadow longer words."""
    unique = sorted({w for w in words if w}, key=lambda w: (-len(w), w))
    return "|".join(re.escape(w) for w in unique)


class _CurrencyResolver:
    """Maps currency tokens (codes and symbols) to ISO codes."""

    def __init__(self, config: ParserConfig):
        self.local = config.local_currency
        self.symbols = dict(config.currency_symbols)
        self.codes = set(KNOWN_CURRENCY_CODES) | set(self.symbols.values()) | {self.local}
        self.pattern = _alternation(list(self.codes) + list(self.symbols))

    def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return self.symbols.get(token, token.upper())


def build_rules(
    config: Optional[ParserConfig] = None,
    minor_unit_digits: int = DEFAULT_DECIMAL_DIGITS,
) -> tuple[ClassificationRule, ...]:
    """Build the ordered rule table for a parser configuration.

    Amounts are recognised with exactly ``minor_unit_digits`` decimals.
    """
    config = config or ParserConfig()
    currencies = _CurrencyResolver(config)
    ccy = currencies.pattern
    amount = signed_amount_pattern(minor_unit_digits)

    tagged_amount = rf"(?:(?P<ccy_pre>{ccy})\s*)?{amount}(?:\s*(?P<ccy_post>{ccy}))?"

    def tagged_currency(match: re.Match) -> Optional[str]:
        pre = currencies.resolve(match.group("ccy_pre"))
        post = currencies.resolve(match.group("ccy_post"))
        if pre and post and pre != post:
            return "?"  # Conflicting tags
        return pre or post

    def amount_fields(match: re.Match) -> Optional[dict[str, Any]]:
        currency = tagged_currency(match)
        if currency == "?":
            return None
        return {
            "amount": amount_from_match(match, minor_unit_digits),
            "currency": currency or currencies.local,
            "currency_tagged": currency is not None,
        }

    def total_fields(match: re.Match) -> Optional[dict[str, Any]]:
        fields = amount_fields(match)
        if fields is None:
            return None
        paren = currencies.resolve(match.group("ccy_label"))
        if paren:
            if fields["currency_tagged"] and fields["currency"] != paren:
                return None
            fields["currency"] = paren
            fields["currency_tagged"] = True
        fields["keyword"] = match.group("keyword").lower()
        return fields

    def exchange_fields(match: re.Match) -> Optional[dict[str, Any]]:
        rate = parse_rate(match.group("rate"))
        if rate <= 0:
            return None
        return {
            "rate": rate,
            "from_currency": currencies.resolve(match.group("from_ccy")),
            "to_currency": currencies.resolve(match.group("to_ccy")),
        }

    def header_fields(match: re.Match) -> dict[str, Any]:
        return {
            "key": match.group("key").lower(),
            "value": match.group("value").strip(),
        }

    def title_fields(match: re.Match) -> dict[str, Any]:
        return {"title": match.group("title").strip()}

    def entry_fields(match: re.Match) -> Optional[dict[str, Any]]:
        description = match.group("description").strip()
        if not _LETTER.search(description):
            return None
        fields = amount_fields(match)
        if fields is None:
            return None
        fields["description"] = description
        return fields

    def foreign_entry_fields(match: re.Match) -> Optional[dict[str, Any]]:
        fields = entry_fields(match)
        if fields is None or fields["currency"] == currencies.local:
            return None
        return fields

    def local_entry_fields(match: re.Match) -> Optional[dict[str, Any]]:
        fields = entry_fields(match)
        if fields is None or fields["currency"] != currencies.local:
            return None
        return fields

    # Description ends on a non-space so every split point is tried once
    entry_pattern = re.compile(
        rf"^\s*(?P<description>\S(?:.*?\S)?)\s+{tagged_amount}\s*$"
    )

    return (
        ClassificationRule(
            name="blank",
            line_class=LineClass.BLANK,
            pattern=re.compile(r"^[^\S\f]*$"),
        ),
        ClassificationRule(
            name="separator",
            line_class=LineClass.SEPARATOR,
            pattern=re.compile(r"^\s*(?:-{3,}|={3,}|_{3,}|\*{3,})\s*$"),
        ),
        ClassificationRule(
            name="page_marker",
            line_class=LineClass.PAGINATION,
            pattern=re.compile(
                r"^\s*(?:"
                r"\f"
                r"|(?:page|seite|pg\.?)\s*\d+(?:\s*(?:of|/|von)\s*\d+)?"
                r"|\(?continued(?:\s+on\s+next\s+page)?\)?"
                r"|-*\s*page\s+break\s*-*"
                r")\s*$",
                re.IGNORECASE,
            ),
        ),
        ClassificationRule(
            name="subtotal",
            line_class=LineClass.SUBTOTAL,
            pattern=re.compile(
                rf"^\s*(?P<keyword>{_alternation(SUBTOTAL_KEYWORDS)})\b.*?{tagged_amount}\s*$",
                re.IGNORECASE,
            ),
            extract=amount_fields,
        ),
        ClassificationRule(
            name="total",
            line_class=LineClass.TOTAL,
            pattern=re.compile(
                rf"^\s*(?P<keyword>{_alternation(config.total_keywords)})\b"
                rf"\s*(?:\(\s*(?P<ccy_label>{ccy})\s*\))?\s*:?\s*{tagged_amount}\s*$",
                re.IGNORECASE,
            ),
            extract=total_fields,
        ),
        ClassificationRule(
            name="exchange_rate",
            line_class=LineClass.EXCHANGE,
            pattern=re.compile(
                rf"^\s*(?:{_alternation(EXCHANGE_KEYWORDS)})\b\s*:?\s*"
                rf"(?:1\s*(?P<from_ccy>{ccy})\s*=\s*)?"
                rf"(?P<rate>{RATE_PATTERN})"
                rf"(?:\s*(?P<to_ccy>{ccy}))?\s*$",
                re.IGNORECASE,
            ),
            extract=exchange_fields,
        ),
        ClassificationRule(
            name="title",
            line_class=LineClass.TITLE,
            pattern=re.compile(
                rf"^\s*(?P<title>{_alternation(config.title_words)})\s*$",
                re.IGNORECASE,
            ),
            extract=title_fields,
        ),
        ClassificationRule(
            name="header_field",
            line_class=LineClass.HEADER_FIELD,
            pattern=re.compile(
                rf"^\s*(?P<key>{_alternation(config.header_keys)})\s*:\s*(?P<value>\S.*?)\s*$",
                re.IGNORECASE,
            ),
            extract=header_fields,
        ),
        ClassificationRule(
            name="foreign_entry",
            line_class=LineClass.ENTRY_FOREIGN,
            pattern=entry_pattern,
            extract=foreign_entry_fields,
        ),
        ClassificationRule(
            name="local_entry",
            line_class=LineClass.ENTRY_LOCAL,
            pattern=entry_pattern,
            extract=local_entry_fields,
        ),
    )


def apply_rule(rule: ClassificationRule, text: str) -> Optional[dict[str, Any]]:
    """
    Try one rule against a line.

    Returns the captured fields when the rule applies, None otherwise.
    Malformed numbers make the rule not apply instead of raising.
    """
    match = rule.pattern.match(text)
    if not match:
        return None
    if rule.extract is None:
        return {}
    try:
        return rule.extract(match)
    except (InvalidOperation, ValueError):
        return None
