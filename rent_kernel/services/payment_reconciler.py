"""
PaymentReconciler -- allocates payments to rent schedule entries and keeps
each entry's derived status current.

Responsibility:
    - Create payments against a lease (manual entry or cheque clearance).
    - Auto-match: oldest-due-first greedy allocation
      (``rent_kernel.domain.allocation.allocate_oldest_first``).
    - Manual match: replace a payment's allocation with an explicit list of
      (schedule entry, amount) pairs.  Zero-amount pairs are dropped, which
      is how a caller removes an earlier match.
    - Re-derive ``status`` / ``paid_amount`` of every entry touched.

Architecture position:
    Kernel > Services.  Calls the pure allocation and status rules in
    ``rent_kernel.domain``; writes Payment, PaymentScheduleMatch and the
    derived fields of RentSchedule.

Invariants enforced:
    - The sum of a payment's matches never exceeds the payment amount.
    - At most one match row per (payment, schedule entry).
    - Entry status is always recomputed from the sum of ALL matches on the
      entry, never adjusted incrementally.  Running the recompute twice on
      unchanged matches gives the same result.
    - Sums are taken in Python over Decimal values, never via SQL SUM, so
      that no backend can introduce float arithmetic.

Failure modes:
    - LeaseNotFoundError / PaymentNotFoundError: missing or inaccessible.
    - ScheduleEntryNotFoundError: a match references an unknown entry.
    - MismatchedLeaseError: a match references another lease's entry.
    - OverAllocationError: manual match total exceeds the payment amount.
    - InvalidAmountError: negative, float or non-finite amount.

Deleting a payment removes its matches.  Whether the affected entries are
re-derived at that point is controlled by ``recompute_on_delete``; when it
is off, their status stays as it was until the next reconciliation or
``refresh_statuses`` touches them.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rent_kernel.db.types import ZERO, money_text, to_money
from rent_kernel.domain.allocation import (
    Allocation,
    AllocationResult,
    OpenEntry,
    allocate_oldest_first,
    validate_manual_allocation,
)
from rent_kernel.domain.clock import Clock
from rent_kernel.domain.dtos import Caller, MatchRequest
from rent_kernel.domain.schedule_status import ScheduleStatus, derive_schedule_state
from rent_kernel.exceptions import (
    MismatchedLeaseError,
    ScheduleEntryNotFoundError,
)
from rent_kernel.logging_config import LogContext, get_logger
from rent_kernel.models import (
    Payment,
    PaymentMethod,
    PaymentScheduleMatch,
    RentSchedule,
)
from rent_kernel.services.access import AccessPolicy
from rent_kernel.services.base import BaseService
from rent_kernel.services.lookup import get_lease, get_payment, stamp_owner_id

logger = get_logger("services.payment_reconciler")


class PaymentReconciler(BaseService[Payment]):
    """
    Creates payments and allocates them across a lease's schedule.

    Contract:
        Every public mutator flushes and returns with all touched schedule
        entries carrying their re-derived status.
    """

    def __init__(
        self,
        session: Session,
        access: AccessPolicy,
        clock: Clock | None = None,
        recompute_on_delete: bool = False,
    ):
        super().__init__(session, clock)
        self.access = access
        self.recompute_on_delete = recompute_on_delete

    # ------------------------------------------------------------------
    # Payment creation
    # ------------------------------------------------------------------

    def create_payment(
        self,
        caller: Caller,
        lease_id: UUID,
        amount: Decimal | int | str,
        payment_date: date,
        method: PaymentMethod | str,
        reference: str | None = None,
        notes: str | None = None,
        matches: Sequence[MatchRequest] | None = None,
        cheque_id: UUID | None = None,
    ) -> Payment:
        """
        Record a payment against a lease.

        With ``matches`` the payment is allocated exactly as given (manual
        match); without, it is auto-matched oldest-due-first.  Insert and
        allocation share one SAVEPOINT: a rejected match leaves no payment
        behind.
        """
        lease = get_lease(self.session, self.access, caller, lease_id)
        payment = Payment(
            owner_id=stamp_owner_id(caller, lease.rental_property),
            lease_id=lease.id,
            tenant_id=lease.tenant_id,
            property_id=lease.property_id,
            payment_date=payment_date,
            amount=to_money(amount),
            method=PaymentMethod(method).value,
            reference=reference,
            notes=notes,
            cheque_id=cheque_id,
            created_by_id=caller.user_id,
        )
        with self.session.begin_nested():
            self.session.add(payment)
            self.session.flush()

            if matches is None:
                self.auto_match(payment, actor_id=caller.user_id)
            else:
                self.match_to_schedule(caller, payment.id, matches)

        logger.info(
            "payment_created",
            extra={
                "payment_id": str(payment.id),
                "lease_id": str(lease.id),
                "amount": money_text(payment.amount),
                "method": payment.method,
                "cheque_id": str(cheque_id) if cheque_id else None,
            },
        )
        return payment

    def create_and_auto_match(
        self,
        caller: Caller,
        lease_id: UUID,
        amount: Decimal | int | str,
        payment_date: date,
        method: PaymentMethod | str = PaymentMethod.CASH,
        reference: str | None = None,
        notes: str | None = None,
        cheque_id: UUID | None = None,
    ) -> Payment:
        return self.create_payment(
            caller,
            lease_id,
            amount,
            payment_date,
            method,
            reference=reference,
            notes=notes,
            matches=None,
            cheque_id=cheque_id,
        )

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def auto_match(self, payment: Payment, actor_id: UUID) -> AllocationResult:
        """
        Allocate ``payment`` oldest-due-first over its lease's schedule.

        Any matches the payment already holds are replaced, so re-running
        auto-match on a payment does not double-apply it.
        """
        with LogContext.bind(payment_id=payment.id, lease_id=payment.lease_id):
            previous = self._delete_matches(payment.id)

            entries = list(
                self.session.scalars(
                    select(RentSchedule)
                    .where(RentSchedule.lease_id == payment.lease_id)
                    .order_by(RentSchedule.due_date, RentSchedule.id)
                )
            )
            already = self._matched_totals(e.id for e in entries)
            result = allocate_oldest_first(
                payment.amount,
                [
                    OpenEntry(
                        entry_id=e.id,
                        due_date=e.due_date,
                        expected_amount=e.expected_amount,
                        already_matched=already.get(e.id, ZERO),
                    )
                    for e in entries
                ],
            )
            self._insert_matches(payment.id, result.allocations, actor_id)

            touched = previous | {a.entry_id for a in result.allocations}
            self._recompute(touched)

            logger.info(
                "payment_auto_matched",
                extra={
                    "matched_entries": len(result.allocations),
                    "allocated": money_text(result.total_allocated),
                    "unallocated": money_text(result.unallocated),
                },
            )
        return result

    def match_to_schedule(
        self,
        caller: Caller,
        payment_id: UUID,
        matches: Sequence[MatchRequest],
    ) -> Payment:
        """
        Replace the payment's allocation with ``matches``.

        Every referenced entry is checked (exists, same lease) before the
        total is checked against the payment.  Nothing is written unless all
        checks pass.
        """
        payment = get_payment(self.session, self.access, caller, payment_id)

        requested: list[Allocation] = []
        for match in matches:
            entry = self.session.get(RentSchedule, match.rent_schedule_id)
            if entry is None:
                raise ScheduleEntryNotFoundError(match.rent_schedule_id)
            if entry.lease_id != payment.lease_id:
                raise MismatchedLeaseError(
                    entry.id, entry.lease_id, payment.lease_id
                )
            requested.append(
                Allocation(
                    entry_id=entry.id,
                    amount=to_money(match.amount, field="match amount"),
                )
            )

        accepted = validate_manual_allocation(payment.id, payment.amount, requested)

        with LogContext.bind(payment_id=payment.id, lease_id=payment.lease_id):
            previous = self._delete_matches(payment.id)
            self._insert_matches(payment.id, accepted, caller.user_id)
            self._recompute(previous | {a.entry_id for a in requested})

            logger.info(
                "payment_manually_matched",
                extra={
                    "requested_pairs": len(requested),
                    "stored_pairs": len(accepted),
                    "unmatched_entries": len(
                        previous - {a.entry_id for a in accepted}
                    ),
                },
            )
        return payment

    # ------------------------------------------------------------------
    # Status derivation
    # ------------------------------------------------------------------

    def recompute_entry_status(self, entry: RentSchedule) -> ScheduleStatus:
        """Re-derive one entry's status and paid amount from its matches."""
        total = self._matched_totals([entry.id]).get(entry.id, ZERO)
        state = derive_schedule_state(
            entry.expected_amount, total, entry.due_date, self.clock.today()
        )
        entry.status = state.status.value
        entry.paid_amount = state.paid_amount
        return state.status

    def refresh_statuses(
        self, caller: Caller, lease_id: UUID
    ) -> dict[ScheduleStatus, int]:
        """
        Re-derive every schedule entry of a lease.

        Picks up DUE -> OVERDUE as the clock moves on and repairs statuses
        left stale by payment deletion.

        Returns:
            Count of entries per resulting status.
        """
        lease = get_lease(self.session, self.access, caller, lease_id)

        entries = list(
            self.session.scalars(
                select(RentSchedule).where(RentSchedule.lease_id == lease.id)
            )
        )
        counts: dict[ScheduleStatus, int] = {}
        for entry in entries:
            status = self.recompute_entry_status(entry)
            counts[status] = counts.get(status, 0) + 1
        self.session.flush()

        logger.info(
            "schedule_statuses_refreshed",
            extra={
                "lease_id": str(lease_id),
                "entries": len(entries),
                "counts": {k.value: v for k, v in counts.items()},
            },
        )
        return counts

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def remove_payment(self, caller: Caller, payment_id: UUID) -> None:
        """Delete a payment and its matches."""
        payment = get_payment(self.session, self.access, caller, payment_id)
        lease_id = payment.lease_id

        touched = self._delete_matches(payment.id)
        self.session.delete(payment)
        self.session.flush()

        if self.recompute_on_delete:
            self._recompute(touched)

        logger.info(
            "payment_removed",
            extra={
                "payment_id": str(payment_id),
                "lease_id": str(lease_id),
                "unmatched_entries": len(touched),
                "statuses_recomputed": self.recompute_on_delete,
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _matched_totals(self, entry_ids: Iterable[UUID]) -> dict[UUID, Decimal]:
        ids = list(entry_ids)
        if not ids:
            return {}
        totals: dict[UUID, Decimal] = {}
        rows = self.session.execute(
            select(
                PaymentScheduleMatch.rent_schedule_id,
                PaymentScheduleMatch.amount,
            ).where(PaymentScheduleMatch.rent_schedule_id.in_(ids))
        )
        for entry_id, amount in rows:
            totals[entry_id] = totals.get(entry_id, ZERO) + amount
        return totals

    def _delete_matches(self, payment_id: UUID) -> set[UUID]:
        """Remove every match of a payment; returns the entries it covered."""
        entry_ids = set(
            self.session.scalars(
                select(PaymentScheduleMatch.rent_schedule_id).where(
                    PaymentScheduleMatch.payment_id == payment_id
                )
            )
        )
        if entry_ids:
            self.session.execute(
                delete(PaymentScheduleMatch).where(
                    PaymentScheduleMatch.payment_id == payment_id
                )
            )
        return entry_ids

    def _insert_matches(
        self,
        payment_id: UUID,
        allocations: Iterable[Allocation],
        actor_id: UUID,
    ) -> None:
        for allocation in allocations:
            self.session.add(
                PaymentScheduleMatch(
                    payment_id=payment_id,
                    rent_schedule_id=allocation.entry_id,
                    amount=allocation.amount,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()

    def _recompute(self, entry_ids: Iterable[UUID]) -> None:
        ids = list(entry_ids)
        if not ids:
            return
        for entry in self.session.scalars(
            select(RentSchedule).where(RentSchedule.id.in_(ids))
        ):
            self.recompute_entry_status(entry)
        self.session.flush()
