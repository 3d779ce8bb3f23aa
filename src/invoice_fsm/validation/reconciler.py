"""
Total reconciliation.

Recomputes the sum of entry amounts and compares it with the stated total.
All arithmetic is done in integer minor units (cents for 2 digits), so the
default comparison is exact decimal equality.

Rules:
- LOCAL entries count at face value (signed, credits reduce the sum)
- FOREIGN entries count as amount * exchange_rate, rounded half-up to the
  minor unit per entry
- A foreign entry without a rate, a rate into a currency other than the
  local one, or a total stated in another currency makes the check
  UNVERIFIABLE
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..schemas import EntryKind, EntryRecord, ParseRecord, SemanticCheck, SemanticStatus

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal, digits: int = 2) -> int:
    """Convert an amount to integer minor units, rounding half-up."""
    quantum = Decimal(1).scaleb(-digits)
    return int(amount.quantize(quantum, rounding=ROUND_HALF_UP).scaleb(digits))


def from_minor_units(units: int, digits: int = 2) -> Decimal:
    return Decimal(units).scaleb(-digits)


class TotalReconciler:
    """Semantic check of a structurally valid ParseRecord."""

    def __init__(
        self,
        local_currency: str = "EUR",
        minor_unit_digits: int = 2,
        tolerance_minor_units: int = 0,
    ):
        self.local_currency = local_currency
        self.minor_unit_digits = minor_unit_digits
        self.tolerance_minor_units = tolerance_minor_units

    def entry_minor_units(self, entry: EntryRecord) -> Optional[int]:
        """Entry value in local minor units, or None if it cannot be converted."""
        if entry.kind == EntryKind.LOCAL:
            return to_minor_units(entry.amount, self.minor_unit_digits)
        if entry.exchange_rate is None:
            return None
        if entry.rate_currency and entry.rate_currency != self.local_currency:
            return None
        return to_minor_units(entry.amount * entry.exchange_rate, self.minor_unit_digits)

    def _unconvertible_reason(self, entry: EntryRecord) -> str:
        if entry.exchange_rate is None:
            return f"entry {entry.position} in {entry.currency} has no exchange rate"
        return (
            f"entry {entry.position} converts {entry.currency} into {entry.rate_currency}, "
            f"not {self.local_currency}"
        )

    def reconcile(self, record: ParseRecord) -> SemanticCheck:
        """Compare the recomputed entry sum with the recorded total."""
        if record.total is None:
            return SemanticCheck(
                status=SemanticStatus.UNVERIFIABLE,
                reason="no total recorded",
            )

        digits = self.minor_unit_digits
        actual = from_minor_units(to_minor_units(record.total, digits), digits)

        if record.total_currency and record.total_currency != self.local_currency:
            return SemanticCheck(
                status=SemanticStatus.UNVERIFIABLE,
                actual=actual,
                reason=f"total stated in {record.total_currency}, "
                f"entries reconcile in {self.local_currency}",
            )

        expected_units = 0
        for entry in record.entries:
            units = self.entry_minor_units(entry)
            if units is None:
                return SemanticCheck(
                    status=SemanticStatus.UNVERIFIABLE,
                    actual=actual,
                    reason=self._unconvertible_reason(entry),
                )
            expected_units += units

        expected = from_minor_units(expected_units, digits)
        difference = abs(to_minor_units(actual, digits) - expected_units)

        if difference <= self.tolerance_minor_units:
            return SemanticCheck(status=SemanticStatus.MATCH, expected=expected, actual=actual)

        logger.debug(f"Reconciliation off by {difference} minor unit(s)")
        return SemanticCheck(
            status=SemanticStatus.MISMATCH,
            expected=expected,
            actual=actual,
            reason="entries do not add up to the stated total",
        )
