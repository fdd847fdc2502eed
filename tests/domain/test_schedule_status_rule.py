"""Derived schedule entry status."""

from datetime import date
from decimal import Decimal

import pytest

from rent_kernel.domain.schedule_status import (
    OUTSTANDING_STATUSES,
    ScheduleStatus,
    derive_schedule_state,
    derive_schedule_status,
)

TODAY = date(2026, 3, 15)
EXPECTED = Decimal("5000")


class TestDeriveScheduleStatus:
    @pytest.mark.parametrize(
        "paid,due,status",
        [
            (Decimal("5000"), date(2026, 1, 1), ScheduleStatus.PAID),
            (Decimal("6000"), date(2026, 4, 1), ScheduleStatus.PAID),
            (Decimal("0.01"), date(2026, 1, 1), ScheduleStatus.PARTIAL),
            (Decimal("4999.99"), date(2026, 4, 1), ScheduleStatus.PARTIAL),
            (Decimal("0"), date(2026, 3, 14), ScheduleStatus.OVERDUE),
            (Decimal("0"), date(2026, 3, 15), ScheduleStatus.DUE),
            (Decimal("0"), date(2026, 4, 1), ScheduleStatus.DUE),
        ],
    )
    def test_rules(self, paid, due, status):
        assert derive_schedule_status(EXPECTED, paid, due, TODAY) is status

    def test_partial_wins_over_overdue(self):
        status = derive_schedule_status(
            EXPECTED, Decimal("100"), date(2025, 1, 1), TODAY
        )
        assert status is ScheduleStatus.PARTIAL

    def test_recompute_is_idempotent(self):
        args = (EXPECTED, Decimal("2500"), date(2026, 2, 1), TODAY)
        assert derive_schedule_state(*args) == derive_schedule_state(*args)


class TestDeriveScheduleState:
    def test_paid_amount_none_when_nothing_matched(self):
        state = derive_schedule_state(EXPECTED, Decimal("0"), date(2026, 4, 1), TODAY)
        assert state.paid_amount is None
        assert state.status is ScheduleStatus.DUE

    def test_paid_amount_carries_total(self):
        state = derive_schedule_state(
            EXPECTED, Decimal("1200"), date(2026, 4, 1), TODAY
        )
        assert state.paid_amount == Decimal("1200")
        assert state.status is ScheduleStatus.PARTIAL


def test_outstanding_statuses():
    assert OUTSTANDING_STATUSES == {
        ScheduleStatus.DUE,
        ScheduleStatus.OVERDUE,
        ScheduleStatus.PARTIAL,
    }
