"""
State machine driver.

Consumes lines in order, classifies each one and applies the transition
declared for (current state, line class). All parser state lives in local
variables of a single parse call; nothing is shared between calls, so
independent documents can be parsed concurrently without locking.
"""

import logging
from typing import Iterable, Optional

from ..classifier import LineClassifier
from ..config import Config
from ..schemas import (
    ClassifiedLine,
    LineClass,
    ParseRecord,
    ParseResult,
    ParserState,
    ValidityVerdict,
)
from ..validation import TotalReconciler
from .transitions import DEFAULT_TRANSITIONS, ActionError, TransitionTable

logger = logging.getLogger(__name__)


class StateMachineDriver:
    """
    Parse one document per call into a ParseRecord and a ValidityVerdict.

    Outcomes are result values: structural errors and truncation come back
    in the verdict, they are never raised.
    """

    def __init__(
        self,
        classifier: Optional[LineClassifier] = None,
        table: Optional[TransitionTable] = None,
        reconciler: Optional[TotalReconciler] = None,
        validate_totals: bool = True,
    ):
        self.classifier = classifier or LineClassifier()
        self.table = table or DEFAULT_TRANSITIONS
        self.reconciler = reconciler or TotalReconciler(
            local_currency=self.classifier.local_currency,
            minor_unit_digits=self.classifier.minor_unit_digits,
        )
        self.validate_totals = validate_totals

    def parse(self, lines: Iterable[str]) -> ParseResult:
        """
        Parse an ordered sequence of lines.

        Strategy:
        1. Classify and transition line by line; stop at the first line
           without a transition (ERROR is absorbing)
        2. Feed END_OF_INPUT; only TOTAL accepts it and moves to TERMINAL
        3. Reconcile the totals of a TERMINAL record
        """
        state = ParserState.INIT
        record = ParseRecord()
        last_index = -1

        for line in self.classifier.classify_all(lines):
            last_index = line.index
            state, verdict = self._step(state, record, line)
            if verdict is not None:
                logger.warning(
                    f"Structural error at line {line.index} ({line.line_class.value}): "
                    f"{verdict.reason}"
                )
                return ParseResult(record, verdict)

        end = ClassifiedLine(
            index=last_index + 1,
            text="",
            line_class=LineClass.END_OF_INPUT,
            rule="end_of_input",
        )
        transition = self.table.lookup(state, LineClass.END_OF_INPUT)
        if transition is None or transition.next_state != ParserState.TERMINAL:
            logger.warning(f"Input truncated in state {state.value}")
            return ParseResult(record, ValidityVerdict.truncated(state))
        state, verdict = self._step(state, record, end)
        if verdict is not None:
            logger.warning(f"Structural error at end of input: {verdict.reason}")
            return ParseResult(record, verdict)

        semantic = None
        if self.validate_totals:
            semantic = self.reconciler.reconcile(record)
            if semantic.is_mismatch:
                logger.warning(
                    f"Total mismatch: computed {semantic.expected}, stated {semantic.actual}"
                )

        logger.info(
            f"Parsed {end.index} line(s): {len(record.entries)} entr(y/ies), "
            f"total {record.total} {record.total_currency or ''}".rstrip()
        )
        return ParseResult(record, ValidityVerdict.valid(semantic))

    def parse_text(self, text: str) -> ParseResult:
        """
        Parse a whole document given as one string.

        Only newlines end a line; form feeds stay in the text as page markers.
        A single trailing newline does not add an empty last line.
        """
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        return self.parse(lines)

    def _step(
        self,
        state: ParserState,
        record: ParseRecord,
        line: ClassifiedLine,
    ) -> tuple[ParserState, Optional[ValidityVerdict]]:
        """Apply one transition. Returns the new state and a verdict on error."""
        transition = self.table.lookup(state, line.line_class)
        if transition is None:
            return ParserState.ERROR, ValidityVerdict.structural_error(
                line_index=line.index,
                line_class=line.line_class,
                state=state,
                reason=f"no transition from {state.value} on {line.line_class.value}",
            )

        if transition.next_state == ParserState.ERROR:
            return ParserState.ERROR, ValidityVerdict.structural_error(
                line_index=line.index,
                line_class=line.line_class,
                state=state,
                reason=f"{line.line_class.value} is rejected in {state.value}",
            )

        try:
            transition.action(record, line)
        except ActionError as e:
            return ParserState.ERROR, ValidityVerdict.structural_error(
                line_index=line.index,
                line_class=line.line_class,
                state=state,
                reason=str(e),
            )

        logger.debug(
            f"Line {line.index}: {state.value} --{line.line_class.value}/"
            f"{transition.action_name}--> {transition.next_state.value}"
        )
        return transition.next_state, None


def build_driver(config: Optional[Config] = None) -> StateMachineDriver:
    """Wire classifier, default table and reconciler from configuration."""
    config = config or Config()
    return StateMachineDriver(
        classifier=LineClassifier(
            config.parser, minor_unit_digits=config.validation.minor_unit_digits
        ),
        reconciler=TotalReconciler(
            local_currency=config.parser.local_currency,
            minor_unit_digits=config.validation.minor_unit_digits,
            tolerance_minor_units=config.validation.tolerance_minor_units,
        ),
        validate_totals=config.validation.enabled,
    )


def parse(lines: Iterable[str], driver: Optional[StateMachineDriver] = None) -> ParseResult:
    """Parse lines with the given driver or a default one."""
    return (driver or StateMachineDriver()).parse(lines)
