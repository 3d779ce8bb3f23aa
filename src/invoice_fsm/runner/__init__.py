"""
CLI runner module.

Provides commands:
- parse: Parse an invoice text file and print record and verdict
- graph: Export the transition table as a diagram
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
