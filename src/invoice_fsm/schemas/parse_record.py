"""
Canonical parse output (SSOT).

The ParseRecord is the only structure the state machine writes into.
Entries and header fields are append-only: no entry is ever removed or
reordered once accumulated.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class EntryKind(str, Enum):
    """Entry subtype, decided by the classifier from the entry currency."""

    LOCAL = "local"
    FOREIGN = "foreign"


@dataclass
class EntryRecord:
    """A single invoice line item."""

    position: int  # 1-based, order of appearance
    line_index: int
    description: str
    amount: Decimal  # Signed; credits are negative
    currency: str  # ISO code, e.g. "EUR"
    kind: EntryKind
    # Only foreign entries carry a rate (local units per foreign unit)
    exchange_rate: Optional[Decimal] = None
    rate_currency: Optional[str] = None  # Target of the rate, when the line names it

    def to_dict(self) -> dict[str, Any]:
        d = {
            "position": self.position,
            "line_index": self.line_index,
            "description": self.description,
            "amount": str(self.amount),
            "currency": self.currency,
            "kind": self.kind.value,
        }
        if self.exchange_rate is not None:
            d["exchange_rate"] = str(self.exchange_rate)
        if self.rate_currency is not None:
            d["rate_currency"] = self.rate_currency
        return d


@dataclass
class ParseRecord:
    """
    Structured fields accumulated during one document parse.

    Created empty at the start of a parse and returned to the caller at
    TERMINAL or ERROR.
    """

    title: Optional[str] = None
    header: dict[str, str] = field(default_factory=dict)
    entries: list[EntryRecord] = field(default_factory=list)
    total: Optional[Decimal] = None
    total_currency: Optional[str] = None
    total_line_index: Optional[int] = None
    page_breaks: int = 0

    def add_header_field(self, key: str, value: str) -> None:
        """Record a header field; existing keys keep their first value."""
        self.header.setdefault(key, value)

    def add_entry(
        self,
        line_index: int,
        description: str,
        amount: Decimal,
        currency: str,
        kind: EntryKind,
    ) -> EntryRecord:
        """Append an entry at the end of the sequence and return it."""
        entry = EntryRecord(
            position=len(self.entries) + 1,
            line_index=line_index,
            description=description,
            amount=amount,
            currency=currency,
            kind=kind,
        )
        self.entries.append(entry)
        return entry

    @property
    def last_entry(self) -> Optional[EntryRecord]:
        return self.entries[-1] if self.entries else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "header": dict(self.header),
            "entries": [e.to_dict() for e in self.entries],
            "total": str(self.total) if self.total is not None else None,
            "total_currency": self.total_currency,
            "total_line_index": self.total_line_index,
            "page_breaks": self.page_breaks,
        }
