"""
Reconciliation of computed monthly totals against a known-good snapshot
(e.g. figures signed off from the accounting system for one dealer or period).
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from monthly import MonthlyTotal

logger = logging.getLogger(__name__)


class ReconciliationError(ValueError):
    pass


@dataclass(frozen=True)
class ExpectedTotals:
    grand_total: float
    # month -> (total, rows)
    monthly: dict[str, tuple[float, int]] = field(default_factory=dict)


@dataclass
class ReconciliationResult:
    grand_total: float
    issues: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def reconcile_monthly_totals(
    monthly: Iterable[MonthlyTotal],
    expected: ExpectedTotals,
    strict: bool = False,
) -> ReconciliationResult:
    """
    Compare monthly totals with expected figures, both rounded to cents.
    strict=True raises ReconciliationError listing every issue; otherwise issues
    are logged and returned.
    """
    by_month = {m.month: m for m in monthly}
    grand = round(sum(m.total for m in by_month.values()), 2)
    issues: list[str] = []

    if grand != round(expected.grand_total, 2):
        issues.append(f"Grand total mismatch: expected {round(expected.grand_total, 2)}, received {grand}")

    for month, (expected_total, expected_rows) in expected.monthly.items():
        actual = by_month.get(month)
        if actual is None:
            issues.append(f"Missing monthly data for {month}")
            continue
        if round(actual.total, 2) != round(expected_total, 2):
            issues.append(
                f"Total mismatch for {month}: expected {round(expected_total, 2)}, received {round(actual.total, 2)}"
            )
        if actual.rows != expected_rows:
            issues.append(f"Row count mismatch for {month}: expected {expected_rows}, received {actual.rows}")

    if issues:
        message = "; ".join(issues)
        if strict:
            raise ReconciliationError(message)
        logger.warning("Sales reconciliation warning: %s", message)

    return ReconciliationResult(grand_total=grand, issues=issues)
