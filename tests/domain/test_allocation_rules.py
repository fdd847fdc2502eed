"""Oldest-due-first auto allocation and manual allocation checks."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from rent_kernel.domain.allocation import (
    Allocation,
    OpenEntry,
    allocate_oldest_first,
    validate_manual_allocation,
)
from rent_kernel.exceptions import OverAllocationError


def _entry(month: int, expected: str, matched: str = "0") -> OpenEntry:
    return OpenEntry(
        entry_id=uuid4(),
        due_date=date(2026, month, 1),
        expected_amount=Decimal(expected),
        already_matched=Decimal(matched),
    )


class TestAllocateOldestFirst:
    def test_spills_into_newer_entry(self):
        older, newer = _entry(1, "20000"), _entry(2, "20000")

        result = allocate_oldest_first(Decimal("30000"), [older, newer])

        assert result.allocations == (
            Allocation(older.entry_id, Decimal("20000")),
            Allocation(newer.entry_id, Decimal("10000")),
        )
        assert result.unallocated == Decimal("0")
        assert result.total_allocated == Decimal("30000")

    def test_order_does_not_depend_on_input_order(self):
        older, newer = _entry(1, "100"), _entry(2, "100")
        result = allocate_oldest_first(Decimal("100"), [newer, older])
        assert result.allocations == (Allocation(older.entry_id, Decimal("100")),)

    def test_skips_fully_covered_entries(self):
        covered, open_ = _entry(1, "100", matched="100"), _entry(2, "100")
        result = allocate_oldest_first(Decimal("50"), [covered, open_])
        assert result.allocations == (Allocation(open_.entry_id, Decimal("50")),)

    def test_tops_up_partially_covered_entry(self):
        partial = _entry(1, "100", matched="70")
        result = allocate_oldest_first(Decimal("50"), [partial])
        assert result.allocations == (Allocation(partial.entry_id, Decimal("30")),)
        assert result.unallocated == Decimal("20")

    def test_overpayment_leaves_remainder(self):
        result = allocate_oldest_first(Decimal("500"), [_entry(1, "100")])
        assert result.total_allocated == Decimal("100")
        assert result.unallocated == Decimal("400")

    def test_no_entries(self):
        result = allocate_oldest_first(Decimal("10"), [])
        assert result.allocations == ()
        assert result.unallocated == Decimal("10")

    def test_zero_payment_allocates_nothing(self):
        result = allocate_oldest_first(Decimal("0"), [_entry(1, "100")])
        assert result.allocations == ()


class TestValidateManualAllocation:
    def test_drops_zero_pairs(self):
        a, b = uuid4(), uuid4()
        accepted = validate_manual_allocation(
            uuid4(),
            Decimal("100"),
            [Allocation(a, Decimal("60")), Allocation(b, Decimal("0"))],
        )
        assert accepted == (Allocation(a, Decimal("60")),)

    def test_merges_repeated_entries(self):
        a = uuid4()
        accepted = validate_manual_allocation(
            uuid4(),
            Decimal("100"),
            [Allocation(a, Decimal("30")), Allocation(a, Decimal("20"))],
        )
        assert accepted == (Allocation(a, Decimal("50")),)

    def test_exact_total_is_allowed(self):
        accepted = validate_manual_allocation(
            uuid4(), Decimal("100"), [Allocation(uuid4(), Decimal("100"))]
        )
        assert len(accepted) == 1

    def test_over_allocation(self):
        payment_id = uuid4()
        with pytest.raises(OverAllocationError) as exc_info:
            validate_manual_allocation(
                payment_id,
                Decimal("100"),
                [
                    Allocation(uuid4(), Decimal("60")),
                    Allocation(uuid4(), Decimal("40.01")),
                ],
            )
        assert exc_info.value.payment_id == str(payment_id)
        assert exc_info.value.requested == "100.01"
        assert exc_info.value.available == "100"

    def test_empty_request_clears_everything(self):
        assert validate_manual_allocation(uuid4(), Decimal("100"), []) == ()
