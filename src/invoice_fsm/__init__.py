"""
Invoice text → line classes → finite-state machine → ParseRecord

A deterministic, testable line-oriented parser for structured invoice text
with an explicit transition table, structural verdicts and total
reconciliation.
"""

__version__ = "0.1.0"
