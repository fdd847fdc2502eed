"""
Rent schedule generation -- pure functions, zero I/O.

Rent is due on a fixed day of the month, not on an offset from the lease
start.  The walk begins one calendar month before the start month and steps
by the frequency's month count, so QUARTERLY and YEARLY phases are anchored
on that earlier month.  Every candidate date is clamped to the month's last
day (due_day=30 in February lands on the 28th or 29th).

Only dates within [start_date, end_date] inclusive are emitted.  Callers are
responsible for rejecting end_date <= start_date before calling.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class RentFrequency(str, Enum):
    """How often an installment falls due."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"


# CUSTOM has no interval of its own and is generated as MONTHLY.
STEP_MONTHS: dict[RentFrequency, int] = {
    RentFrequency.MONTHLY: 1,
    RentFrequency.QUARTERLY: 3,
    RentFrequency.YEARLY: 12,
    RentFrequency.CUSTOM: 1,
}


@dataclass(frozen=True)
class ScheduleLine:
    """One expected installment."""

    due_date: date
    expected_amount: Decimal


def _shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def due_date_in_month(year: int, month: int, due_day: int) -> date:
    """Due date for ``due_day`` in the given month, clamped to its last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(due_day, last_day))


def generate_due_dates(
    start_date: date,
    end_date: date,
    due_day: int,
    frequency: RentFrequency,
) -> list[date]:
    """
    Strictly increasing due dates inside [start_date, end_date].

    The cursor is the first of a month, starting one month before the start
    month, and advances by the frequency's step until it passes end_date.
    """
    step = STEP_MONTHS[RentFrequency(frequency)]
    year, month = _shift_month(start_date.year, start_date.month, -1)

    dates: list[date] = []
    while date(year, month, 1) <= end_date:
        due = due_date_in_month(year, month, due_day)
        if start_date <= due <= end_date:
            dates.append(due)
        year, month = _shift_month(year, month, step)
    return dates


def generate_schedule(
    start_date: date,
    end_date: date,
    due_day: int,
    frequency: RentFrequency,
    amount: Decimal,
) -> list[ScheduleLine]:
    """Ordered installments for a lease's terms, each for the full amount."""
    return [
        ScheduleLine(due_date=due, expected_amount=amount)
        for due in generate_due_dates(start_date, end_date, due_day, frequency)
    ]
