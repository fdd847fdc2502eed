"""
Schedule entry status derivation -- pure function, zero I/O.

Status is never set directly; it is recomputed from the sum of all payment
matches against an entry, the entry's expected amount, and today's date.
Running the derivation twice on unchanged inputs yields the same result.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")


class ScheduleStatus(str, Enum):
    DUE = "DUE"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


OUTSTANDING_STATUSES: frozenset[ScheduleStatus] = frozenset(
    {ScheduleStatus.DUE, ScheduleStatus.OVERDUE, ScheduleStatus.PARTIAL}
)


@dataclass(frozen=True)
class DerivedScheduleState:
    """Result of deriving one entry's status and paid amount."""

    status: ScheduleStatus
    paid_amount: Decimal | None


def derive_schedule_status(
    expected_amount: Decimal,
    total_paid: Decimal,
    due_date: date,
    today: date,
) -> ScheduleStatus:
    if total_paid >= expected_amount:
        return ScheduleStatus.PAID
    if total_paid > ZERO:
        return ScheduleStatus.PARTIAL
    if due_date < today:
        return ScheduleStatus.OVERDUE
    return ScheduleStatus.DUE


def derive_schedule_state(
    expected_amount: Decimal,
    total_paid: Decimal,
    due_date: date,
    today: date,
) -> DerivedScheduleState:
    """Status plus paid amount; paid amount is None when nothing is matched."""
    return DerivedScheduleState(
        status=derive_schedule_status(expected_amount, total_paid, due_date, today),
        paid_amount=total_paid if total_paid > ZERO else None,
    )
