"""ChequePaymentBackfill: payments for CLEARED cheques that have none."""

from datetime import date

import pytest

from conftest import OWNER_ID, count_rows
from rent_kernel.exceptions import InvalidAmountError, InvalidTransitionError
from rent_kernel.models import Payment
from rent_services import ChequePaymentBackfill


@pytest.fixture
def orphan_cheque(rent, owner, lease, make_cheque, monkeypatch):
    """A CLEARED cheque whose payment side effect failed."""
    cheque = make_cheque(lease)
    with monkeypatch.context() as m:
        m.setattr(
            rent.payments,
            "create_and_auto_match",
            _raise(InvalidAmountError("amount", "x", "bank feed outage")),
        )
        rent.cheques.transition(owner, cheque.id, "DEPOSITED")
        result = rent.cheques.transition(
            owner, cheque.id, "CLEARED", cleared_or_bounce_date=date(2026, 1, 3)
        )
    assert result.payment is None
    return cheque


def _raise(exc):
    def _fail(*args, **kwargs):
        raise exc

    return _fail


class TestBackfill:
    def test_finds_and_creates(self, rent, owner, orphan_cheque, lease, session):
        backfill = ChequePaymentBackfill(rent)
        assert [c.id for c, _ in backfill.pending_cheques()] == [orphan_cheque.id]

        report = backfill.run()

        assert (report.found, report.created, report.failed) == (1, 1, 0)
        payment = session.get(Payment, report.created_payment_ids[0])
        assert payment.cheque_id == orphan_cheque.id
        assert payment.created_by_id == OWNER_ID
        assert payment.payment_date == date(2026, 1, 3)
        assert rent.schedule_selector.for_lease(owner, lease.id)[0].status == "PAID"

    def test_second_run_finds_nothing(self, rent, orphan_cheque, session):
        backfill = ChequePaymentBackfill(rent)
        backfill.run()

        report = backfill.run()

        assert report.found == 0
        assert count_rows(session, Payment) == 1

    def test_dry_run_writes_nothing(self, rent, orphan_cheque, session):
        report = ChequePaymentBackfill(rent).run(dry_run=True)

        assert report.found == 1
        assert report.created == 0
        assert count_rows(session, Payment) == 0

    def test_cheques_with_payments_ignored(self, rent, owner, lease, make_cheque):
        cheque = make_cheque(lease)
        rent.cheques.transition(owner, cheque.id, "DEPOSITED")
        rent.cheques.transition(owner, cheque.id, "CLEARED")

        assert ChequePaymentBackfill(rent).pending_cheques() == []

    def test_archived_cheques_skipped(self, rent, owner, lease, orphan_cheque):
        rent.leases.archive(owner, lease.id)
        assert ChequePaymentBackfill(rent).run().found == 0

    def test_failure_counted_and_run_continues(
        self, rent, owner, lease, make_cheque, orphan_cheque, monkeypatch
    ):
        second = make_cheque(lease, number="000124")
        with monkeypatch.context() as m:
            m.setattr(
                rent.payments,
                "create_and_auto_match",
                _raise(InvalidAmountError("amount", "x", "bank feed outage")),
            )
            rent.cheques.transition(owner, second.id, "DEPOSITED")
            rent.cheques.transition(owner, second.id, "CLEARED")
        real = rent.cheques.ensure_cheque_payment

        def flaky(caller, cheque_id):
            if cheque_id == orphan_cheque.id:
                raise InvalidTransitionError(cheque_id, "CLEARED", "CLEARED")
            return real(caller, cheque_id)

        monkeypatch.setattr(rent.cheques, "ensure_cheque_payment", flaky)

        report = ChequePaymentBackfill(rent).run()

        assert report.found == 2
        assert report.failed == 1
        assert report.failed_cheque_ids == [orphan_cheque.id]
        assert report.created == 1

    def test_warning_result_counted_as_failure(
        self, rent, orphan_cheque, monkeypatch, captured_logs
    ):
        monkeypatch.setattr(
            rent.payments,
            "create_and_auto_match",
            _raise(InvalidAmountError("amount", "x", "still down")),
        )

        report = ChequePaymentBackfill(rent).run()

        assert report.failed == 1
        finished = [
            r for r in captured_logs() if r["message"] == "cheque_backfill_finished"
        ]
        assert finished[0]["payments_created"] == 0
        assert finished[0]["failed"] == 1
