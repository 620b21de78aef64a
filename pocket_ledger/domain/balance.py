"""
Balance aggregation over movement collections.

Every cached balance in the system is defined by `aggregate`: the sum of
the signed amounts of the movements that are neither pending nor
orphaned. The scoped helpers filter first and aggregate second, so the
inclusion rule lives in exactly one place.

All functions here are pure. Calling them twice on the same collection
yields the same Decimal; nothing is rounded beyond Decimal's own
precision (amounts are stored with 6 fractional digits).
"""

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from pocket_ledger.domain.movement import Movement


ZERO = Decimal("0")


def counts_toward_balance(movement: Movement) -> bool:
    """Pending and orphaned movements contribute nothing."""
    return not movement.is_pending and not movement.is_orphaned


def aggregate(movements: Iterable[Movement]) -> Decimal:
    """Signed total of the movements that count toward balances."""
    return sum(
        (m.signed_amount for m in movements if counts_toward_balance(m)),
        ZERO,
    )


def pocket_balance(movements: Iterable[Movement], pocket_id: uuid.UUID) -> Decimal:
    return aggregate(m for m in movements if m.pocket_id == pocket_id)


def sub_pocket_balance(movements: Iterable[Movement], sub_pocket_id: uuid.UUID) -> Decimal:
    return aggregate(m for m in movements if m.sub_pocket_id == sub_pocket_id)


def account_balance(movements: Iterable[Movement], account_id: uuid.UUID) -> Decimal:
    return aggregate(m for m in movements if m.account_id == account_id)


def sum_balances(balances: Iterable[Decimal]) -> Decimal:
    """Roll cached balances of a lower tier up into their owner."""
    return sum(balances, ZERO)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def total_income(movements: Iterable[Movement]) -> Decimal:
    """Unsigned sum of income movements that count toward balances."""
    return sum(
        (m.amount for m in movements if counts_toward_balance(m) and m.is_income),
        ZERO,
    )


def total_expense(movements: Iterable[Movement]) -> Decimal:
    """Unsigned sum of expense movements that count toward balances."""
    return sum(
        (m.amount for m in movements if counts_toward_balance(m) and m.is_expense),
        ZERO,
    )


@dataclass(frozen=True)
class PeriodSummary:
    income: Decimal
    expense: Decimal
    movement_count: int

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


def summarize(movements: Iterable[Movement]) -> PeriodSummary:
    items = list(movements)
    return PeriodSummary(
        income=total_income(items),
        expense=total_expense(items),
        movement_count=len(items),
    )


def filter_by_date_range(
    movements: Iterable[Movement], start: date, end: date
) -> list[Movement]:
    """Movements whose displayed date falls in [start, end]."""
    return [m for m in movements if start <= m.displayed_date <= end]


def filter_by_month(movements: Iterable[Movement], year: int, month: int) -> list[Movement]:
    return [
        m for m in movements
        if m.displayed_date.year == year and m.displayed_date.month == month
    ]


def group_by_month(movements: Iterable[Movement]) -> dict[str, list[Movement]]:
    """Group movements under "YYYY-MM" keys, preserving input order."""
    grouped: dict[str, list[Movement]] = defaultdict(list)
    for m in movements:
        grouped[f"{m.displayed_date.year:04d}-{m.displayed_date.month:02d}"].append(m)
    return dict(grouped)
