"""
Transition table (SSOT for the parser grammar).

The table is an explicit mapping (state, line class) -> (next state, action).
Pairs that are not declared lead to ERROR. Actions are plain functions that
write into the ParseRecord; they may refuse a line by raising ActionError,
which the driver reports as a structural error at that line.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from ..schemas import (
    LINE_CLASSES,
    ClassifiedLine,
    EntryKind,
    LineClass,
    ParseRecord,
    ParserState,
)

Action = Callable[[ParseRecord, ClassifiedLine], None]


class TransitionTableError(Exception):
    """Raised when a transition table is malformed."""

    pass


class ActionError(Exception):
    """Raised by an action that cannot apply a structurally expected line."""

    pass


# ============================================================================
# Actions
# ============================================================================


def noop(record: ParseRecord, line: ClassifiedLine) -> None:
    pass


def set_title(record: ParseRecord, line: ClassifiedLine) -> None:
    if record.title is None:
        record.title = line.get("title")


def add_header_field(record: ParseRecord, line: ClassifiedLine) -> None:
    key, value = line.get("key"), line.get("value")
    existing = record.header.get(key)
    if existing is not None and existing != value:
        raise ActionError(f"conflicting value for header field '{key}'")
    record.add_header_field(key, value)


def check_repeated_header(record: ParseRecord, line: ClassifiedLine) -> None:
    """Header repeated on a continuation page must agree with the first page."""
    add_header_field(record, line)


def append_entry(record: ParseRecord, line: ClassifiedLine) -> None:
    kind = EntryKind.FOREIGN if line.line_class == LineClass.ENTRY_FOREIGN else EntryKind.LOCAL
    record.add_entry(
        line_index=line.index,
        description=line.get("description"),
        amount=line.get("amount"),
        currency=line.get("currency"),
        kind=kind,
    )


def attach_exchange_rate(record: ParseRecord, line: ClassifiedLine) -> None:
    """
    Attach the rate to the entry directly above it, which must be foreign.

    The default table leaves EXCHANGE on another exchange line undeclared;
    tables that allow consecutive rate lines still get one rate per entry.
    """
    entry = record.last_entry
    if entry is None or entry.kind != EntryKind.FOREIGN:
        raise ActionError("exchange rate does not follow a foreign entry")
    if entry.exchange_rate is not None:
        raise ActionError(f"entry {entry.position} already has an exchange rate")
    from_currency = line.get("from_currency")
    if from_currency and from_currency != entry.currency:
        raise ActionError(
            f"exchange rate is for {from_currency}, entry {entry.position} is in {entry.currency}"
        )
    entry.exchange_rate = line.get("rate")
    entry.rate_currency = line.get("to_currency")


def count_page_break(record: ParseRecord, line: ClassifiedLine) -> None:
    record.page_breaks += 1


def set_total(record: ParseRecord, line: ClassifiedLine) -> None:
    record.total = line.get("amount")
    record.total_currency = line.get("currency")
    record.total_line_index = line.index


# ============================================================================
# Table
# ============================================================================


@dataclass(frozen=True)
class Transition:
    next_state: ParserState
    action: Action = noop

    @property
    def action_name(self) -> str:
        return getattr(self.action, "__name__", repr(self.action))


TransitionKey = tuple[ParserState, LineClass]

# Every symbol the driver can feed, including the synthetic end marker
INPUT_SYMBOLS: tuple[LineClass, ...] = LINE_CLASSES + (LineClass.END_OF_INPUT,)


class TransitionTable:
    """
    First-class transition mapping.

    Validated on construction:
    - absorbing states (TERMINAL, ERROR) have no outgoing transitions
    - TERMINAL is only entered on END_OF_INPUT, i.e. after the whole input
    """

    def __init__(self, transitions: Mapping[TransitionKey, Transition]):
        self._transitions: dict[TransitionKey, Transition] = dict(transitions)
        self._validate()

    def _validate(self) -> None:
        for key, transition in self._transitions.items():
            if not (isinstance(key, tuple) and len(key) == 2):
                raise TransitionTableError(f"Transition key must be (state, class): {key!r}")
            state, line_class = key
            if not isinstance(state, ParserState) or not isinstance(line_class, LineClass):
                raise TransitionTableError(f"Transition key has wrong types: {key!r}")
            if not isinstance(transition, Transition):
                raise TransitionTableError(f"Value for {key!r} is not a Transition")
            if state.is_absorbing:
                raise TransitionTableError(f"Absorbing state {state.value} has outgoing transition")
            if (
                transition.next_state == ParserState.TERMINAL
                and line_class != LineClass.END_OF_INPUT
            ):
                raise TransitionTableError(
                    f"TERMINAL may only be entered on end of input, not on {line_class.value}"
                )

    def lookup(self, state: ParserState, line_class: LineClass) -> Optional[Transition]:
        return self._transitions.get((state, line_class))

    def declared_pairs(self) -> frozenset[TransitionKey]:
        return frozenset(self._transitions)

    def undeclared_pairs(self) -> list[TransitionKey]:
        """All (non-absorbing state, input symbol) pairs that lead to ERROR."""
        return [
            (state, line_class)
            for state in ParserState
            if not state.is_absorbing
            for line_class in INPUT_SYMBOLS
            if (state, line_class) not in self._transitions
        ]

    @property
    def states(self) -> list[ParserState]:
        """States that appear in the table, in declaration order of the enum."""
        used = {s for s, _ in self._transitions} | {
            t.next_state for t in self._transitions.values()
        }
        return [s for s in ParserState if s in used]

    def items(self):
        return self._transitions.items()

    def __iter__(self) -> Iterator[TransitionKey]:
        return iter(self._transitions)

    def __len__(self) -> int:
        return len(self._transitions)

    def __contains__(self, key: object) -> bool:
        return key in self._transitions


def _declare(
    table: dict[TransitionKey, Transition],
    state: ParserState,
    classes: tuple[LineClass, ...],
    next_state: ParserState,
    action: Action = noop,
) -> None:
    for line_class in classes:
        table[(state, line_class)] = Transition(next_state, action)


def build_default_transitions() -> dict[TransitionKey, Transition]:
    """The invoice grammar: header, entries with optional sections, total."""
    S, C = ParserState, LineClass
    entries = (C.ENTRY_LOCAL, C.ENTRY_FOREIGN)
    filler = (C.BLANK, C.SEPARATOR)
    t: dict[TransitionKey, Transition] = {}

    # Start
    _declare(t, S.INIT, (C.BLANK,), S.INIT)
    _declare(t, S.INIT, (C.TITLE,), S.HEADER, set_title)
    _declare(t, S.INIT, (C.HEADER_FIELD,), S.HEADER, add_header_field)

    # Header block
    _declare(t, S.HEADER, filler, S.HEADER)
    _declare(t, S.HEADER, (C.HEADER_FIELD,), S.HEADER, add_header_field)
    _declare(t, S.HEADER, entries, S.ENTRY, append_entry)
    _declare(t, S.HEADER, (C.TOTAL,), S.TOTAL, set_total)

    # Entries (self loop)
    _declare(t, S.ENTRY, entries, S.ENTRY, append_entry)
    _declare(t, S.ENTRY, filler + (C.SUBTOTAL,), S.ENTRY)
    _declare(t, S.ENTRY, (C.EXCHANGE,), S.EXCHANGE, attach_exchange_rate)
    _declare(t, S.ENTRY, (C.PAGINATION,), S.PAGINATION, count_page_break)
    _declare(t, S.ENTRY, (C.TOTAL,), S.TOTAL, set_total)

    # Optional exchange detail under a foreign entry
    _declare(t, S.EXCHANGE, entries, S.ENTRY, append_entry)
    _declare(t, S.EXCHANGE, filler + (C.SUBTOTAL,), S.EXCHANGE)
    _declare(t, S.EXCHANGE, (C.PAGINATION,), S.PAGINATION, count_page_break)
    _declare(t, S.EXCHANGE, (C.TOTAL,), S.TOTAL, set_total)

    # Optional page break block; title and header may repeat on the new page
    _declare(t, S.PAGINATION, (C.PAGINATION,), S.PAGINATION, count_page_break)
    _declare(t, S.PAGINATION, filler + (C.TITLE, C.SUBTOTAL), S.PAGINATION)
    _declare(t, S.PAGINATION, (C.HEADER_FIELD,), S.PAGINATION, check_repeated_header)
    _declare(t, S.PAGINATION, entries, S.ENTRY, append_entry)
    _declare(t, S.PAGINATION, (C.TOTAL,), S.TOTAL, set_total)

    # Total, then end of input
    _declare(t, S.TOTAL, filler, S.TOTAL)
    _declare(t, S.TOTAL, (C.END_OF_INPUT,), S.TERMINAL)

    return t


DEFAULT_TRANSITIONS = TransitionTable(build_default_transitions())
