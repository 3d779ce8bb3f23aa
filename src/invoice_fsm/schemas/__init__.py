"""
SSOT (Single Source of Truth) schemas for the parser.

These canonical schemas are the ONLY models shared between the classifier,
the state machine and the validation layer.
"""

from .parse_record import EntryKind, EntryRecord, ParseRecord
from .symbols import LINE_CLASSES, ClassifiedLine, LineClass, ParserState
from .verdict import (
    ErrorKind,
    ParseResult,
    SemanticCheck,
    SemanticStatus,
    ValidityVerdict,
    VerdictKind,
)

__all__ = [
    # Parse record
    "EntryKind",
    "EntryRecord",
    "ParseRecord",
    # Alphabet
    "LINE_CLASSES",
    "ClassifiedLine",
    "LineClass",
    "ParserState",
    # Verdict
    "ErrorKind",
    "ParseResult",
    "SemanticCheck",
    "SemanticStatus",
    "ValidityVerdict",
    "VerdictKind",
]
