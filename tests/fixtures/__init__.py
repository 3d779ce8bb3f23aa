"""
Test fixtures for invoice text documents.

This module provides sample documents for testing:
- invoice_local.txt: local-currency invoice without optional sections
- invoice_multipage_de.txt: German two-page invoice with a foreign entry,
  an exchange rate line, a page break and a subtotal
"""

from pathlib import Path

FIXTURES_DIR = Path(__file__).parent

# One sample line per line class, keyed by LineClass value
CLASS_SAMPLES = {
    "blank": "",
    "separator": "-----",
    "pagination": "Page 2",
    "subtotal": "Subtotal 10.00",
    "total": "Total: 10.00",
    "exchange": "Exchange rate: 0.90",
    "title": "INVOICE",
    "header-field": "Date: 2024-11-20",
    "entry-foreign": "Hotel USD 100.00",
    "entry-local": "Consulting 10.00",
    "unrecognized": "Thank you for your business",
}

# Shortest line sequence that leaves the default machine in each state
STATE_PREFIXES = {
    "INIT": [],
    "HEADER": ["INVOICE"],
    "ENTRY": ["INVOICE", "Consulting 10.00"],
    "EXCHANGE": ["INVOICE", "Hotel USD 100.00", "Exchange rate: 0.90"],
    "PAGINATION": ["INVOICE", "Consulting 10.00", "Page 1 of 2"],
    "TOTAL": ["INVOICE", "Consulting 10.00", "Total: 10.00"],
}


def load_fixture(name: str) -> str:
    """Load a fixture file as string."""
    filepath = FIXTURES_DIR / name
    return filepath.read_text(encoding="utf-8")


def get_local_invoice() -> str:
    return load_fixture("invoice_local.txt")


def get_multipage_invoice() -> str:
    return load_fixture("invoice_multipage_de.txt")


def invoice_lines(*entries: str, total: str = "Total: 30.00") -> list[str]:
    """Minimal well-formed document: title, entries, total."""
    return ["INVOICE", *entries, total]
