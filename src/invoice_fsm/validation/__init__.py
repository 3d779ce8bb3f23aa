"""
Post-parse validation.

Semantic checks layered on top of structural validity. A failed check is
reported as a flag, never as a structural error.
"""

from .reconciler import TotalReconciler, from_minor_units, to_minor_units

__all__ = [
    "TotalReconciler",
    "from_minor_units",
    "to_minor_units",
]
