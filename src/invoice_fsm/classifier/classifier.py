"""
Line classifier.

Assigns a LineClass to one line of text by running the ordered rule table.
Classification is context free: it depends on the line only, never on
parser state, so it can be tested without the state machine.
"""

import logging
from typing import Iterable, Iterator, Optional

from ..config import ParserConfig
from ..schemas import ClassifiedLine, LineClass
from .amounts import DEFAULT_DECIMAL_DIGITS
from .rules import ClassificationRule, apply_rule, build_rules

logger = logging.getLogger(__name__)

UNRECOGNIZED_RULE = "unrecognized"


class LineClassifier:
    """
    Classify invoice lines with a fixed-priority rule table.

    Never raises on malformed input: lines no rule accepts are
    UNRECOGNIZED, which is a valid outcome.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        rules: Optional[Iterable[ClassificationRule]] = None,
        minor_unit_digits: int = DEFAULT_DECIMAL_DIGITS,
    ):
        self.config = config or ParserConfig()
        self.minor_unit_digits = minor_unit_digits
        self.rules: tuple[ClassificationRule, ...] = (
            tuple(rules) if rules is not None else build_rules(self.config, minor_unit_digits)
        )

    @property
    def local_currency(self) -> str:
        return self.config.local_currency

    def classify(self, text: str, index: int = 0) -> ClassifiedLine:
        """Classify a single line. First matching rule wins."""
        # Trailing newlines from file readers are not content
        text = text.rstrip("\r\n")

        for rule in self.rules:
            fields = apply_rule(rule, text)
            if fields is not None:
                return ClassifiedLine(
                    index=index,
                    text=text,
                    line_class=rule.line_class,
                    rule=rule.name,
                    fields=fields,
                )

        logger.debug(f"Line {index} unrecognized: {text[:50]!r}")
        return ClassifiedLine(
            index=index,
            text=text,
            line_class=LineClass.UNRECOGNIZED,
            rule=UNRECOGNIZED_RULE,
        )

    def classify_all(self, lines: Iterable[str]) -> Iterator[ClassifiedLine]:
        """Classify lines lazily, numbering them from 0."""
        for index, text in enumerate(lines):
            yield self.classify(text, index)
