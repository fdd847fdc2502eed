"""
LeaseLifecycleService -- creates, edits, archives, terminates and deletes
leases, keeping the rent schedule and property occupancy in step.

Responsibility:
    - Validate lease terms: tenant and property in one ownership scope,
      end_date after start_date, due day in range, no overlapping
      non-archived lease on the property.
    - Generate the rent schedule (``rent_kernel.domain.schedule``) on
      create, and regenerate it whenever a schedule-shaping term changes.
    - Cascade archive / restore to the lease's cheques and payments.
    - Re-derive property occupancy after every change that can affect it.

Architecture position:
    Kernel > Services.  Uses PropertyOccupancyService; never touches
    schedule status beyond the initial derivation of fresh entries.

Invariants enforced:
    - end_date > start_date.
    - No two non-archived leases on a property have intersecting
      [start_date, end_date] windows (``start <= other_end AND
      end >= other_start``).
    - termination_date is write-once and lies within the lease window.
    - Regeneration is destructive: every old entry and every payment match
      against it is deleted before the new entries are inserted.  Delete
      and insert happen inside one SAVEPOINT, so no reader of the
      transaction sees an empty schedule.
    - Archive / restore touch lease, cheques and payments inside one
      SAVEPOINT: all three change or none do.
    - Terminating early leaves the schedule untouched.

Failure modes:
    - PropertyNotFoundError, TenantNotFoundError, LeaseNotFoundError.
    - InvalidLeaseDatesError, TerminationOutOfRangeError,
      LeaseAlreadyTerminatedError.
    - LeaseOverlapError.
    - InvalidLeaseTermsError, InvalidAmountError.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rent_kernel.db.types import ZERO, to_money
from rent_kernel.domain.clock import Clock
from rent_kernel.domain.dtos import (
    CLEARABLE_LEASE_FIELDS,
    Caller,
    LeaseChanges,
    LeaseTerms,
)
from rent_kernel.domain.schedule import RentFrequency, generate_schedule
from rent_kernel.domain.schedule_status import derive_schedule_status
from rent_kernel.exceptions import (
    InvalidLeaseDatesError,
    InvalidLeaseTermsError,
    LeaseAlreadyTerminatedError,
    LeaseOverlapError,
    TenantNotFoundError,
    TerminationOutOfRangeError,
)
from rent_kernel.logging_config import LogContext, get_logger
from rent_kernel.models import (
    Cheque,
    Lease,
    Payment,
    PaymentScheduleMatch,
    Property,
    RentSchedule,
    Tenant,
)
from rent_kernel.services.access import AccessPolicy
from rent_kernel.services.base import BaseService
from rent_kernel.services.lookup import get_lease, get_property, stamp_owner_id
from rent_kernel.services.occupancy_service import PropertyOccupancyService

logger = get_logger("services.lease")

SCHEDULE_FIELDS = (
    "start_date",
    "end_date",
    "due_day",
    "rent_frequency",
    "installment_amount",
)


@dataclass(frozen=True)
class _ValidatedTerms:
    start_date: date
    end_date: date
    rent_frequency: RentFrequency
    installment_amount: Decimal
    due_day: int
    security_deposit: Decimal | None


class LeaseLifecycleService(BaseService[Lease]):
    """Lease create / update / archive / restore / terminate / remove."""

    def __init__(
        self,
        session: Session,
        access: AccessPolicy,
        clock: Clock | None = None,
        occupancy: PropertyOccupancyService | None = None,
        max_due_day: int = 28,
    ):
        super().__init__(session, clock)
        self.access = access
        self.occupancy = occupancy or PropertyOccupancyService(session, self.clock)
        self.max_due_day = max_due_day

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    def create(self, caller: Caller, terms: LeaseTerms) -> Lease:
        prop = get_property(self.session, self.access, caller, terms.property_id)
        self._check_tenant(terms.tenant_id, prop)
        valid = self._validate(
            terms.start_date,
            terms.end_date,
            terms.rent_frequency,
            terms.installment_amount,
            terms.due_day,
            terms.security_deposit,
        )
        self._check_overlap(prop.id, valid.start_date, valid.end_date)

        lease = Lease(
            owner_id=stamp_owner_id(caller, prop),
            property_id=prop.id,
            tenant_id=terms.tenant_id,
            start_date=valid.start_date,
            end_date=valid.end_date,
            rent_frequency=valid.rent_frequency.value,
            installment_amount=valid.installment_amount,
            due_day=valid.due_day,
            security_deposit=valid.security_deposit,
            notes=terms.notes,
            created_by_id=caller.user_id,
        )
        self.session.add(lease)
        self.session.flush()

        with LogContext.bind(lease_id=lease.id):
            entries = self._insert_schedule(lease, caller.user_id)
            self.occupancy.recompute(prop.id)
            logger.info(
                "lease_created",
                extra={
                    "property_id": str(prop.id),
                    "tenant_id": str(terms.tenant_id),
                    "start_date": valid.start_date,
                    "end_date": valid.end_date,
                    "rent_frequency": valid.rent_frequency.value,
                    "schedule_entries": entries,
                },
            )
        return lease

    def update(self, caller: Caller, lease_id: UUID, changes: LeaseChanges) -> Lease:
        """
        Merge ``changes`` over the lease and re-validate the result.

        When any of start/end date, due day, frequency or amount changes,
        the schedule is regenerated from scratch and every payment match on
        the old entries is lost.
        """
        lease = get_lease(self.session, self.access, caller, lease_id)
        self._check_clear(changes)
        provided = changes.provided()

        target_property_id = provided.get("property_id", lease.property_id)
        prop = get_property(self.session, self.access, caller, target_property_id)
        tenant_id = provided.get("tenant_id", lease.tenant_id)
        self._check_tenant(tenant_id, prop)

        valid = self._validate(
            provided.get("start_date", lease.start_date),
            provided.get("end_date", lease.end_date),
            provided.get("rent_frequency", lease.rent_frequency),
            provided.get("installment_amount", lease.installment_amount),
            provided.get("due_day", lease.due_day),
            provided.get("security_deposit", lease.security_deposit),
        )
        if lease.termination_date is not None and not (
            valid.start_date <= lease.termination_date <= valid.end_date
        ):
            raise TerminationOutOfRangeError(
                lease.id, lease.termination_date, valid.start_date, valid.end_date
            )
        self._check_overlap(
            prop.id, valid.start_date, valid.end_date, exclude_lease_id=lease.id
        )

        old_property_id = lease.property_id
        reschedule = (
            valid.start_date != lease.start_date
            or valid.end_date != lease.end_date
            or valid.due_day != lease.due_day
            or valid.rent_frequency.value != lease.rent_frequency
            or valid.installment_amount != lease.installment_amount
        )

        with LogContext.bind(lease_id=lease.id):
            with self.session.begin_nested():
                lease.property_id = prop.id
                lease.tenant_id = tenant_id
                lease.start_date = valid.start_date
                lease.end_date = valid.end_date
                lease.rent_frequency = valid.rent_frequency.value
                lease.installment_amount = valid.installment_amount
                lease.due_day = valid.due_day
                lease.security_deposit = valid.security_deposit
                if "notes" in provided:
                    lease.notes = provided["notes"]
                lease.updated_by_id = caller.user_id
                self.session.flush()

                if reschedule:
                    removed = self._delete_schedule(lease.id)
                    created = self._insert_schedule(lease, caller.user_id)
                    logger.info(
                        "schedule_regenerated",
                        extra={
                            "removed_entries": removed,
                            "created_entries": created,
                        },
                    )

            if old_property_id != prop.id:
                self.occupancy.recompute(old_property_id, exclude_lease_id=lease.id)
            self.occupancy.recompute(prop.id)

            logger.info(
                "lease_updated",
                extra={
                    "changed_fields": sorted(provided),
                    "rescheduled": reschedule,
                },
            )
        return lease

    # ------------------------------------------------------------------
    # Archive / restore
    # ------------------------------------------------------------------

    def archive(self, caller: Caller, lease_id: UUID) -> Lease:
        """Soft-delete the lease with its cheques and payments."""
        lease = get_lease(self.session, self.access, caller, lease_id)
        if lease.archived_at is not None:
            return lease

        now = self.clock.now()
        with LogContext.bind(lease_id=lease.id):
            counts = self._set_archived(lease, now, caller.user_id)
            self.occupancy.recompute(lease.property_id)
            logger.info("lease_archived", extra=counts)
        return lease

    def restore(self, caller: Caller, lease_id: UUID) -> Lease:
        """
        Undo ``archive``.

        The restored window must not overlap a lease that was created on the
        property while this one was archived.
        """
        lease = get_lease(self.session, self.access, caller, lease_id)
        if lease.archived_at is None:
            return lease

        self._check_overlap(
            lease.property_id,
            lease.start_date,
            lease.end_date,
            exclude_lease_id=lease.id,
        )
        with LogContext.bind(lease_id=lease.id):
            counts = self._set_archived(lease, None, caller.user_id)
            self.occupancy.recompute(lease.property_id)
            logger.info("lease_restored", extra=counts)
        return lease

    # ------------------------------------------------------------------
    # Termination / deletion
    # ------------------------------------------------------------------

    def terminate_early(
        self, caller: Caller, lease_id: UUID, termination_date: date
    ) -> Lease:
        lease = get_lease(self.session, self.access, caller, lease_id)
        if not lease.start_date <= termination_date <= lease.end_date:
            raise TerminationOutOfRangeError(
                lease.id, termination_date, lease.start_date, lease.end_date
            )
        if lease.termination_date is not None:
            raise LeaseAlreadyTerminatedError(lease.id, lease.termination_date)

        lease.termination_date = termination_date
        lease.updated_by_id = caller.user_id
        self.session.flush()

        with LogContext.bind(lease_id=lease.id):
            self.occupancy.recompute(lease.property_id)
            logger.info(
                "lease_terminated",
                extra={"termination_date": termination_date},
            )
        return lease

    def remove(self, caller: Caller, lease_id: UUID) -> None:
        """
        Hard-delete a lease together with its schedule, matches, cheques and
        payments, then re-derive the vacated property's occupancy.
        """
        lease = get_lease(self.session, self.access, caller, lease_id)
        property_id = lease.property_id

        with self.session.begin_nested():
            schedule_entries = self._delete_schedule(lease.id)
            payment_ids = list(
                self.session.scalars(select(Payment.id).where(Payment.lease_id == lease.id))
            )
            if payment_ids:
                self.session.execute(
                    delete(PaymentScheduleMatch).where(
                        PaymentScheduleMatch.payment_id.in_(payment_ids)
                    )
                )
                self.session.execute(delete(Payment).where(Payment.id.in_(payment_ids)))
            cheque_ids = list(
                self.session.scalars(select(Cheque.id).where(Cheque.lease_id == lease.id))
            )
            if cheque_ids:
                for other in self.session.scalars(
                    select(Cheque).where(
                        Cheque.replaced_by_cheque_id.in_(cheque_ids),
                        Cheque.lease_id != lease.id,
                    )
                ):
                    other.replaced_by_cheque_id = None
                self.session.execute(delete(Cheque).where(Cheque.id.in_(cheque_ids)))
            self.session.delete(lease)
            self.session.flush()

        self.occupancy.recompute(property_id)
        logger.info(
            "lease_removed",
            extra={
                "lease_id": str(lease_id),
                "property_id": str(property_id),
                "schedule_entries": schedule_entries,
                "payments": len(payment_ids),
                "cheques": len(cheque_ids),
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(
        self,
        start_date: date,
        end_date: date,
        rent_frequency: RentFrequency | str,
        installment_amount: Decimal | int | str,
        due_day: int,
        security_deposit: Decimal | int | str | None,
    ) -> _ValidatedTerms:
        if end_date <= start_date:
            raise InvalidLeaseDatesError(start_date, end_date)
        if isinstance(due_day, bool) or not isinstance(due_day, int):
            raise InvalidLeaseTermsError("due_day", due_day, "must be an integer")
        if not 1 <= due_day <= self.max_due_day:
            raise InvalidLeaseTermsError(
                "due_day", due_day, f"must be between 1 and {self.max_due_day}"
            )
        try:
            frequency = RentFrequency(rent_frequency)
        except ValueError:
            raise InvalidLeaseTermsError(
                "rent_frequency",
                rent_frequency,
                f"must be one of {', '.join(f.value for f in RentFrequency)}",
            ) from None
        return _ValidatedTerms(
            start_date=start_date,
            end_date=end_date,
            rent_frequency=frequency,
            installment_amount=to_money(installment_amount, "installment_amount"),
            due_day=due_day,
            security_deposit=(
                to_money(security_deposit, "security_deposit")
                if security_deposit is not None
                else None
            ),
        )

    @staticmethod
    def _check_clear(changes: LeaseChanges) -> None:
        for name in sorted(changes.clear):
            if name not in CLEARABLE_LEASE_FIELDS:
                raise InvalidLeaseTermsError(
                    "clear", name, "only security_deposit and notes can be cleared"
                )
            if getattr(changes, name) is not None:
                raise InvalidLeaseTermsError(
                    "clear", name, "cannot set and clear the same field"
                )

    def _check_tenant(self, tenant_id: UUID, prop: Property) -> Tenant:
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None or tenant.owner_id != prop.owner_id:
            raise TenantNotFoundError(tenant_id)
        return tenant

    def _check_overlap(
        self,
        property_id: UUID,
        start_date: date,
        end_date: date,
        exclude_lease_id: UUID | None = None,
    ) -> None:
        stmt = select(Lease).where(
            Lease.property_id == property_id,
            Lease.archived_at.is_(None),
            Lease.start_date <= end_date,
            Lease.end_date >= start_date,
        )
        if exclude_lease_id is not None:
            stmt = stmt.where(Lease.id != exclude_lease_id)
        conflict = self.session.scalars(stmt.limit(1)).first()
        if conflict is not None:
            raise LeaseOverlapError(property_id, conflict.id, start_date, end_date)

    def _insert_schedule(self, lease: Lease, actor_id: UUID) -> int:
        today = self.clock.today()
        lines = generate_schedule(
            lease.start_date,
            lease.end_date,
            lease.due_day,
            RentFrequency(lease.rent_frequency),
            lease.installment_amount,
        )
        for line in lines:
            self.session.add(
                RentSchedule(
                    lease_id=lease.id,
                    due_date=line.due_date,
                    expected_amount=line.expected_amount,
                    status=derive_schedule_status(
                        line.expected_amount, ZERO, line.due_date, today
                    ).value,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()
        return len(lines)

    def _delete_schedule(self, lease_id: UUID) -> int:
        """Delete a lease's schedule entries and every match against them."""
        entry_ids = list(
            self.session.scalars(
                select(RentSchedule.id).where(RentSchedule.lease_id == lease_id)
            )
        )
        if not entry_ids:
            return 0
        self.session.execute(
            delete(PaymentScheduleMatch).where(
                PaymentScheduleMatch.rent_schedule_id.in_(entry_ids)
            )
        )
        self.session.execute(delete(RentSchedule).where(RentSchedule.id.in_(entry_ids)))
        return len(entry_ids)

    def _set_archived(
        self, lease: Lease, stamp: datetime | None, actor_id: UUID
    ) -> dict[str, int]:
        cheques = list(
            self.session.scalars(select(Cheque).where(Cheque.lease_id == lease.id))
        )
        payments = list(
            self.session.scalars(select(Payment).where(Payment.lease_id == lease.id))
        )
        with self.session.begin_nested():
            lease.archived_at = stamp
            lease.updated_by_id = actor_id
            for cheque in cheques:
                cheque.archived_at = stamp
                cheque.updated_by_id = actor_id
            for payment in payments:
                payment.archived_at = stamp
                payment.updated_by_id = actor_id
            self.session.flush()
        return {"cheques": len(cheques), "payments": len(payments)}
