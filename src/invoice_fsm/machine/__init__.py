"""
Finite-state machine.

Provides:
- TransitionTable / DEFAULT_TRANSITIONS: the explicit invoice grammar
- StateMachineDriver: runs one document through the table
- to_dot / to_mermaid: diagram export of a table
"""

from .driver import StateMachineDriver, build_driver, parse
from .export import to_dot, to_mermaid
from .transitions import (
    DEFAULT_TRANSITIONS,
    INPUT_SYMBOLS,
    ActionError,
    Transition,
    TransitionTable,
    TransitionTableError,
    build_default_transitions,
)

__all__ = [
    "StateMachineDriver",
    "build_driver",
    "parse",
    "to_dot",
    "to_mermaid",
    "DEFAULT_TRANSITIONS",
    "INPUT_SYMBOLS",
    "ActionError",
    "Transition",
    "TransitionTable",
    "TransitionTableError",
    "build_default_transitions",
]
