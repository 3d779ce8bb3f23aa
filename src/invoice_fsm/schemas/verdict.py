"""
Validity verdict returned alongside every ParseRecord.

Structural validity (did the document follow the expected state sequence)
and semantic validity (do the numbers add up) are reported separately:
a semantic mismatch never makes a structurally valid document invalid.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple, Optional

from .parse_record import ParseRecord
from .symbols import LineClass, ParserState


class VerdictKind(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"


class ErrorKind(str, Enum):
    """
    Structural failure taxonomy.

    STRUCTURAL: no transition for (state, line class), or an action refused
        the line. Parsing halts at that line.
    TRUNCATION: input ended before the TERMINAL state was reached.
    """

    STRUCTURAL = "STRUCTURAL"
    TRUNCATION = "TRUNCATION"


class SemanticStatus(str, Enum):
    MATCH = "MATCH"
    MISMATCH = "MISMATCH"
    UNVERIFIABLE = "UNVERIFIABLE"


@dataclass(frozen=True)
class SemanticCheck:
    """Outcome of reconciling entry amounts against the stated total."""

    status: SemanticStatus
    expected: Optional[Decimal] = None  # Recomputed from entries
    actual: Optional[Decimal] = None  # As stated on the total line
    reason: Optional[str] = None

    @property
    def difference(self) -> Optional[Decimal]:
        if self.expected is None or self.actual is None:
            return None
        return self.actual - self.expected

    @property
    def is_mismatch(self) -> bool:
        return self.status == SemanticStatus.MISMATCH

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"status": self.status.value}
        if self.expected is not None:
            d["expected"] = str(self.expected)
        if self.actual is not None:
            d["actual"] = str(self.actual)
        if self.difference is not None:
            d["difference"] = str(self.difference)
        if self.reason:
            d["reason"] = self.reason
        return d


@dataclass(frozen=True)
class ValidityVerdict:
    """Structural verdict plus the optional semantic flag."""

    kind: VerdictKind
    error: Optional[ErrorKind] = None
    line_index: Optional[int] = None
    line_class: Optional[LineClass] = None
    last_state: Optional[ParserState] = None
    reason: Optional[str] = None
    semantic: Optional[SemanticCheck] = None

    @classmethod
    def valid(cls, semantic: Optional[SemanticCheck] = None) -> "ValidityVerdict":
        return cls(kind=VerdictKind.VALID, last_state=ParserState.TERMINAL, semantic=semantic)

    @classmethod
    def structural_error(
        cls,
        line_index: int,
        line_class: LineClass,
        state: ParserState,
        reason: str,
    ) -> "ValidityVerdict":
        return cls(
            kind=VerdictKind.INVALID,
            error=ErrorKind.STRUCTURAL,
            line_index=line_index,
            line_class=line_class,
            last_state=state,
            reason=reason,
        )

    @classmethod
    def truncated(cls, state: ParserState) -> "ValidityVerdict":
        return cls(
            kind=VerdictKind.INVALID,
            error=ErrorKind.TRUNCATION,
            last_state=state,
            reason="unexpected end of input",
        )

    @property
    def is_valid(self) -> bool:
        return self.kind == VerdictKind.VALID

    @property
    def semantic_mismatch(self) -> bool:
        return self.semantic is not None and self.semantic.is_mismatch

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"kind": self.kind.value}
        if self.error is not None:
            d["error"] = self.error.value
        if self.line_index is not None:
            d["line_index"] = self.line_index
        if self.line_class is not None:
            d["line_class"] = self.line_class.value
        if self.last_state is not None:
            d["last_state"] = self.last_state.value
        if self.reason:
            d["reason"] = self.reason
        if self.semantic is not None:
            d["semantic"] = self.semantic.to_dict()
        return d


class ParseResult(NamedTuple):
    """Return value of a parse; unpacks as ``record, verdict``."""

    record: ParseRecord
    verdict: ValidityVerdict

    def to_dict(self) -> dict[str, Any]:
        return {"record": self.record.to_dict(), "verdict": self.verdict.to_dict()}
