"""
State machine alphabet: parser states, line classes and classified lines.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ParserState(str, Enum):
    """Finite set of parser states. INIT is the unique start state."""

    INIT = "INIT"
    HEADER = "HEADER"
    ENTRY = "ENTRY"
    EXCHANGE = "EXCHANGE"
    PAGINATION = "PAGINATION"
    TOTAL = "TOTAL"
    TERMINAL = "TERMINAL"
    ERROR = "ERROR"

    @property
    def is_absorbing(self) -> bool:
        return self in (ParserState.TERMINAL, ParserState.ERROR)


class LineClass(str, Enum):
    """Label assigned to one input line, independent of parser state."""

    BLANK = "blank"
    SEPARATOR = "separator"
    PAGINATION = "pagination"
    SUBTOTAL = "subtotal"
    TOTAL = "total"
    EXCHANGE = "exchange"
    TITLE = "title"
    HEADER_FIELD = "header-field"
    ENTRY_FOREIGN = "entry-foreign"
    ENTRY_LOCAL = "entry-local"
    UNRECOGNIZED = "unrecognized"
    # Synthetic symbol fed by the driver once the input is exhausted
    END_OF_INPUT = "end-of-input"


# Classes the classifier can produce (END_OF_INPUT never comes from a line)
LINE_CLASSES: tuple[LineClass, ...] = tuple(
    c for c in LineClass if c is not LineClass.END_OF_INPUT
)


@dataclass(frozen=True)
class ClassifiedLine:
    """A line together with its class and the fields captured by the rule."""

    index: int
    text: str
    line_class: LineClass
    rule: str
    fields: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)
