"""
Payment allocation -- pure functions, zero I/O.

Two allocation modes feed the Payment Reconciler:

* ``allocate_oldest_first`` -- greedy auto-match.  Walks outstanding entries
  in due-date order, applies ``min(remaining, still_owed)`` to each, and stops
  once the payment is exhausted.  Earlier matches are never re-balanced and
  there is no look-ahead.
* ``validate_manual_allocation`` -- checks a caller-supplied allocation
  against the payment total and drops zero-amount pairs (an omitted or zeroed
  entry is how a caller removes a previous match).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from rent_kernel.exceptions import OverAllocationError

ZERO = Decimal("0")


@dataclass(frozen=True)
class OpenEntry:
    """A schedule entry as seen by the allocator."""

    entry_id: UUID
    due_date: date
    expected_amount: Decimal
    already_matched: Decimal = ZERO

    @property
    def still_owed(self) -> Decimal:
        return self.expected_amount - self.already_matched


@dataclass(frozen=True)
class Allocation:
    """Amount of one payment applied to one schedule entry."""

    entry_id: UUID
    amount: Decimal


@dataclass(frozen=True)
class AllocationResult:
    allocations: tuple[Allocation, ...]
    unallocated: Decimal

    @property
    def total_allocated(self) -> Decimal:
        return sum((a.amount for a in self.allocations), ZERO)


def allocate_oldest_first(
    amount: Decimal,
    entries: Iterable[OpenEntry],
) -> AllocationResult:
    """
    Greedy oldest-due-first allocation of ``amount``.

    Entries are sorted by due date here so the result does not depend on the
    caller's ordering.  Entries already fully covered are skipped.
    """
    remaining = amount
    allocations: list[Allocation] = []
    for entry in sorted(entries, key=lambda e: e.due_date):
        if remaining <= ZERO:
            break
        owed = entry.still_owed
        if owed <= ZERO:
            continue
        applied = min(remaining, owed)
        allocations.append(Allocation(entry_id=entry.entry_id, amount=applied))
        remaining -= applied
    return AllocationResult(allocations=tuple(allocations), unallocated=remaining)


def validate_manual_allocation(
    payment_id: UUID,
    payment_amount: Decimal,
    requested: Sequence[Allocation],
) -> tuple[Allocation, ...]:
    """
    Check a manual allocation and return the pairs worth storing.

    The sum is checked over every supplied pair.  Pairs with a zero amount
    are dropped from the result.  Repeated entry ids are merged so that at
    most one match row exists per (payment, entry).

    Raises:
        OverAllocationError: if the supplied amounts exceed the payment.
    """
    total = sum((a.amount for a in requested), ZERO)
    if total > payment_amount:
        raise OverAllocationError(payment_id, str(total), str(payment_amount))

    merged: dict[UUID, Decimal] = {}
    for allocation in requested:
        if allocation.amount <= ZERO:
            continue
        merged[allocation.entry_id] = (
            merged.get(allocation.entry_id, ZERO) + allocation.amount
        )
    return tuple(Allocation(entry_id=k, amount=v) for k, v in merged.items())
