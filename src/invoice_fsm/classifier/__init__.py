"""
Line classification.

Provides:
- LineClassifier: ordered, first-match-wins dispatch over rules
- build_rules: the default rule table for a parser configuration
- Amount and rate parsing helpers
"""

from .amounts import parse_amount, parse_english_amount, parse_german_amount, parse_rate
from .classifier import LineClassifier
from .rules import ClassificationRule, build_rules

__all__ = [
    "LineClassifier",
    "ClassificationRule",
    "build_rules",
    "parse_amount",
    "parse_english_amount",
    "parse_german_amount",
    "parse_rate",
]
