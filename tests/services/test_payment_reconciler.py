"""
PaymentReconciler: oldest-due-first auto-match, manual match with implicit
unmatch, derived entry status, deletion and status refresh.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import count_rows
from rent_kernel.domain.dtos import Caller, MatchRequest
from rent_kernel.domain.schedule_status import ScheduleStatus
from rent_kernel.exceptions import (
    InvalidAmountError,
    LeaseNotFoundError,
    MismatchedLeaseError,
    OverAllocationError,
    PaymentNotFoundError,
    ScheduleEntryNotFoundError,
)
from rent_kernel.models import Payment, PaymentMethod, PaymentScheduleMatch
from rent_kernel.services import PaymentReconciler


@pytest.fixture
def big_lease(rent, owner, make_terms):
    """Monthly lease with 20000 installments."""
    return rent.leases.create(owner, make_terms(installment_amount=Decimal("20000")))


def _entries(rent, lease):
    caller = Caller(user_id=lease.owner_id)
    return rent.schedule_selector.for_lease(caller, lease.id)


def _pay(rent, owner, lease, amount, **kwargs):
    return rent.payments.create_and_auto_match(
        owner, lease.id, amount, date(2026, 3, 1), **kwargs
    )


class TestAutoMatch:
    def test_spills_oldest_first(self, rent, owner, big_lease):
        payment = _pay(rent, owner, big_lease, "30000")

        jan, feb, mar = _entries(rent, big_lease)[:3]
        assert jan.status == "PAID"
        assert jan.paid_amount == Decimal("20000")
        assert feb.status == "PARTIAL"
        assert feb.paid_amount == Decimal("10000")
        assert mar.status == "OVERDUE"
        assert rent.payment_selector.unallocated_amount(payment.id) == Decimal("0")

    def test_second_payment_tops_up_partial_entry(self, rent, owner, big_lease):
        _pay(rent, owner, big_lease, "30000")
        second = _pay(rent, owner, big_lease, "15000")

        matches = rent.payment_selector.matches_for_payment(second.id)
        assert [(m.due_date, m.amount) for m in matches] == [
            (date(2026, 2, 1), Decimal("10000")),
            (date(2026, 3, 1), Decimal("5000")),
        ]
        feb, mar = _entries(rent, big_lease)[1:3]
        assert feb.status == "PAID"
        assert mar.status == "PARTIAL"

    def test_overpayment_left_unallocated(self, rent, owner, make_terms):
        lease = rent.leases.create(
            owner,
            make_terms(start_date=date(2026, 1, 1), end_date=date(2026, 2, 15)),
        )
        payment = _pay(rent, owner, lease, "12000")

        assert [e.status for e in _entries(rent, lease)] == ["PAID", "PAID"]
        assert rent.payment_selector.unallocated_amount(payment.id) == Decimal("2000")

    def test_rerun_does_not_double_apply(self, rent, owner, big_lease, session):
        payment = _pay(rent, owner, big_lease, "30000")

        rent.payments.auto_match(payment, actor_id=owner.user_id)

        assert count_rows(session, PaymentScheduleMatch) == 2
        assert rent.payment_selector.unallocated_amount(payment.id) == Decimal("0")

    def test_payment_fields(self, rent, owner, lease):
        payment = _pay(
            rent,
            owner,
            lease,
            "5000",
            method=PaymentMethod.BANK_TRANSFER,
            reference="TRX-99",
        )
        assert payment.method == "BANK_TRANSFER"
        assert payment.reference == "TRX-99"
        assert payment.tenant_id == lease.tenant_id
        assert payment.property_id == lease.property_id

    def test_negative_amount(self, rent, owner, lease, session):
        with pytest.raises(InvalidAmountError):
            _pay(rent, owner, lease, "-1")
        assert count_rows(session, Payment) == 0

    def test_unknown_method(self, rent, owner, lease):
        with pytest.raises(ValueError):
            _pay(rent, owner, lease, "100", method="BARTER")

    def test_inaccessible_lease(self, rent, other_owner, lease):
        with pytest.raises(LeaseNotFoundError):
            _pay(rent, other_owner, lease, "100")

    def test_logs_allocation(self, rent, owner, big_lease, captured_logs):
        payment = _pay(rent, owner, big_lease, "30000")

        records = [r for r in captured_logs() if r["message"] == "payment_auto_matched"]
        assert records[0]["payment_id"] == str(payment.id)
        assert records[0]["matched_entries"] == 2
        assert records[0]["allocated"] == "30000"
        assert records[0]["unallocated"] == "0"

    def test_logged_amounts_ignore_stored_scale(
        self, rent, owner, lease, session, captured_logs
    ):
        # Reload so expected amounts come back from the Numeric column.
        session.expire_all()

        _pay(rent, owner, lease, "7500.50")

        matched = [r for r in captured_logs() if r["message"] == "payment_auto_matched"]
        created = [r for r in captured_logs() if r["message"] == "payment_created"]
        assert matched[0]["allocated"] == "7500.5"
        assert matched[0]["unallocated"] == "0"
        assert created[0]["amount"] == "7500.5"


class TestManualMatch:
    def test_create_with_explicit_matches(self, rent, owner, lease):
        entries = _entries(rent, lease)

        payment = rent.payments.create_payment(
            owner,
            lease.id,
            "5000",
            date(2026, 3, 1),
            "CASH",
            matches=[MatchRequest(entries[2].id, "5000")],
        )

        statuses = [e.status for e in _entries(rent, lease)]
        assert statuses[:3] == ["OVERDUE", "OVERDUE", "PAID"]
        matches = rent.payment_selector.matches_for_payment(payment.id)
        assert [m.rent_schedule_id for m in matches] == [entries[2].id]

    def test_zero_amount_removes_match(self, rent, owner, big_lease):
        payment = _pay(rent, owner, big_lease, "30000")
        jan, feb = _entries(rent, big_lease)[:2]

        rent.payments.match_to_schedule(
            owner,
            payment.id,
            [MatchRequest(jan.id, "20000"), MatchRequest(feb.id, "0")],
        )

        matches = rent.payment_selector.matches_for_payment(payment.id)
        assert [(m.rent_schedule_id, m.amount) for m in matches] == [
            (jan.id, Decimal("20000"))
        ]
        jan, feb = _entries(rent, big_lease)[:2]
        assert jan.status == "PAID"
        assert feb.status == "OVERDUE"
        assert feb.paid_amount is None
        assert rent.payment_selector.unallocated_amount(payment.id) == Decimal("10000")

    def test_only_zero_pair_clears_every_match(self, rent, owner, big_lease):
        payment = _pay(rent, owner, big_lease, "30000")
        feb = _entries(rent, big_lease)[1]

        rent.payments.match_to_schedule(owner, payment.id, [MatchRequest(feb.id, 0)])

        assert rent.payment_selector.matches_for_payment(payment.id) == []
        assert [e.status for e in _entries(rent, big_lease)[:2]] == [
            "OVERDUE",
            "OVERDUE",
        ]

    def test_over_allocation_changes_nothing(self, rent, owner, big_lease):
        payment = _pay(rent, owner, big_lease, "30000")
        jan, feb, mar = _entries(rent, big_lease)[:3]

        with pytest.raises(OverAllocationError) as exc_info:
            rent.payments.match_to_schedule(
                owner,
                payment.id,
                [
                    MatchRequest(jan.id, "20000"),
                    MatchRequest(feb.id, "10000"),
                    MatchRequest(mar.id, "0.01"),
                ],
            )
        assert exc_info.value.available == "30000"
        assert len(rent.payment_selector.matches_for_payment(payment.id)) == 2

    def test_rejected_create_leaves_no_payment(self, rent, owner, lease, session):
        entry = _entries(rent, lease)[0]

        with pytest.raises(OverAllocationError):
            rent.payments.create_payment(
                owner,
                lease.id,
                "100",
                date(2026, 1, 2),
                PaymentMethod.CASH,
                matches=[MatchRequest(entry.id, "500")],
            )

        assert count_rows(session, Payment) == 0
        assert count_rows(session, PaymentScheduleMatch) == 0
        assert _entries(rent, lease)[0].status == "OVERDUE"

    def test_create_with_foreign_or_unknown_entry_leaves_no_payment(
        self, rent, owner, make_terms, lease, second_property, session
    ):
        other = rent.leases.create(owner, make_terms(property_id=second_property.id))
        foreign_entry = _entries(rent, other)[0]

        with pytest.raises(MismatchedLeaseError):
            rent.payments.create_payment(
                owner,
                lease.id,
                "5000",
                date(2026, 1, 2),
                PaymentMethod.CASH,
                matches=[MatchRequest(foreign_entry.id, "5000")],
            )
        with pytest.raises(ScheduleEntryNotFoundError):
            rent.payments.create_payment(
                owner,
                lease.id,
                "5000",
                date(2026, 1, 2),
                PaymentMethod.CASH,
                matches=[MatchRequest(uuid4(), "5000")],
            )

        assert count_rows(session, Payment) == 0

    def test_entry_from_other_lease(
        self, rent, owner, make_terms, lease, second_property
    ):
        other = rent.leases.create(owner, make_terms(property_id=second_property.id))
        payment = _pay(rent, owner, lease, "5000")
        foreign_entry = _entries(rent, other)[0]

        with pytest.raises(MismatchedLeaseError) as exc_info:
            rent.payments.match_to_schedule(
                owner, payment.id, [MatchRequest(foreign_entry.id, "5000")]
            )
        assert exc_info.value.payment_lease_id == str(lease.id)
        assert exc_info.value.schedule_lease_id == str(other.id)
        assert len(rent.payment_selector.matches_for_payment(payment.id)) == 1

    def test_unknown_entry(self, rent, owner, lease):
        payment = _pay(rent, owner, lease, "5000")
        with pytest.raises(ScheduleEntryNotFoundError):
            rent.payments.match_to_schedule(
                owner, payment.id, [MatchRequest(uuid4(), "5000")]
            )

    def test_float_match_amount(self, rent, owner, lease):
        payment = _pay(rent, owner, lease, "5000")
        entry = _entries(rent, lease)[0]
        with pytest.raises(InvalidAmountError):
            rent.payments.match_to_schedule(
                owner, payment.id, [MatchRequest(entry.id, 5000.0)]
            )

    def test_unknown_payment(self, rent, owner, lease):
        with pytest.raises(PaymentNotFoundError):
            rent.payments.match_to_schedule(owner, uuid4(), [])


class TestRemovePayment:
    def test_default_leaves_status_stale(self, rent, owner, lease, session):
        payment = _pay(rent, owner, lease, "5000")

        rent.payments.remove_payment(owner, payment.id)

        assert count_rows(session, Payment) == 0
        assert count_rows(session, PaymentScheduleMatch) == 0
        assert _entries(rent, lease)[0].status == "PAID"

    def test_refresh_repairs_stale_status(self, rent, owner, lease):
        payment = _pay(rent, owner, lease, "5000")
        rent.payments.remove_payment(owner, payment.id)

        rent.payments.refresh_statuses(owner, lease.id)

        january = _entries(rent, lease)[0]
        assert january.status == "OVERDUE"
        assert january.paid_amount is None

    def test_recompute_on_delete(self, rent, owner, lease, session, access, clock):
        reconciler = PaymentReconciler(
            session, access, clock=clock, recompute_on_delete=True
        )
        payment = reconciler.create_and_auto_match(
            owner, lease.id, "5000", date(2026, 1, 2)
        )

        reconciler.remove_payment(owner, payment.id)

        assert _entries(rent, lease)[0].status == "OVERDUE"

    def test_inaccessible(self, rent, owner, other_owner, lease):
        payment = _pay(rent, owner, lease, "5000")
        with pytest.raises(PaymentNotFoundError):
            rent.payments.remove_payment(other_owner, payment.id)


class TestRefreshStatuses:
    def test_due_becomes_overdue_as_clock_moves(self, rent, owner, lease, clock):
        clock.advance_days(30)  # 2026-04-14

        counts = rent.payments.refresh_statuses(owner, lease.id)

        assert counts == {ScheduleStatus.OVERDUE: 4, ScheduleStatus.DUE: 8}

    def test_idempotent(self, rent, owner, lease):
        _pay(rent, owner, lease, "7500")

        first = rent.payments.refresh_statuses(owner, lease.id)
        second = rent.payments.refresh_statuses(owner, lease.id)

        assert first == second
        assert first[ScheduleStatus.PAID] == 1
        assert first[ScheduleStatus.PARTIAL] == 1

    def test_unknown_lease(self, rent, owner):
        with pytest.raises(LeaseNotFoundError):
            rent.payments.refresh_statuses(owner, uuid4())

    def test_other_owner_cannot_refresh(self, rent, other_owner, lease, clock):
        clock.advance_days(60)

        with pytest.raises(LeaseNotFoundError):
            rent.payments.refresh_statuses(other_owner, lease.id)
