"""
Rent schedule queries: a lease's schedule, overdue entries, outstanding
entries.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from rent_kernel.domain.clock import Clock
from rent_kernel.domain.dtos import Caller
from rent_kernel.domain.schedule_status import OUTSTANDING_STATUSES
from rent_kernel.models import Lease, RentSchedule
from rent_kernel.selectors.base import BaseSelector
from rent_kernel.services.access import AccessPolicy
from rent_kernel.services.lookup import get_lease


@dataclass(frozen=True)
class ScheduleEntryDTO:
    id: UUID
    lease_id: UUID
    property_id: UUID
    tenant_id: UUID
    due_date: date
    expected_amount: Decimal
    paid_amount: Decimal | None
    status: str

    @property
    def still_owed(self) -> Decimal:
        return self.expected_amount - (self.paid_amount or Decimal("0"))


class ScheduleSelector(BaseSelector[RentSchedule]):
    """Read side of rent schedules, scoped by the access policy."""

    def __init__(
        self,
        session: Session,
        access: AccessPolicy,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self.access = access

    def for_lease(self, caller: Caller, lease_id: UUID) -> list[ScheduleEntryDTO]:
        """
        All entries of one lease, oldest due date first.

        Raises:
            LeaseNotFoundError: lease missing or outside the caller's scope.
        """
        lease = get_lease(self.session, self.access, caller, lease_id)
        stmt = (
            self._base_query()
            .where(RentSchedule.lease_id == lease.id)
            .order_by(RentSchedule.due_date)
        )
        return [self._to_dto(entry, lease) for entry, lease in self.session.execute(stmt)]

    def overdue(
        self,
        caller: Caller,
        property_id: UUID | None = None,
    ) -> list[ScheduleEntryDTO]:
        """Unpaid or part-paid entries whose due date is before today."""
        property_ids = self._scope(caller, property_id)
        if not property_ids:
            return []
        stmt = (
            self._base_query()
            .where(
                Lease.property_id.in_(property_ids),
                RentSchedule.status.in_([s.value for s in OUTSTANDING_STATUSES]),
                RentSchedule.due_date < self.clock.today(),
            )
            .order_by(RentSchedule.due_date)
        )
        return [self._to_dto(entry, lease) for entry, lease in self.session.execute(stmt)]

    def outstanding(
        self,
        caller: Caller,
        property_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[ScheduleEntryDTO]:
        """Entries in DUE, OVERDUE or PARTIAL, optionally within a due-date range."""
        property_ids = self._scope(caller, property_id)
        if not property_ids:
            return []
        stmt = self._base_query().where(
            Lease.property_id.in_(property_ids),
            RentSchedule.status.in_([s.value for s in OUTSTANDING_STATUSES]),
        )
        if date_from is not None:
            stmt = stmt.where(RentSchedule.due_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(RentSchedule.due_date <= date_to)
        stmt = stmt.order_by(RentSchedule.due_date)
        return [self._to_dto(entry, lease) for entry, lease in self.session.execute(stmt)]

    def _scope(self, caller: Caller, property_id: UUID | None) -> list[UUID]:
        accessible = self.access.accessible_property_ids(caller)
        if property_id is None:
            return accessible
        return [property_id] if property_id in accessible else []

    @staticmethod
    def _base_query():
        return select(RentSchedule, Lease).join(Lease, RentSchedule.lease_id == Lease.id)

    @staticmethod
    def _to_dto(entry: RentSchedule, lease: Lease) -> ScheduleEntryDTO:
        return ScheduleEntryDTO(
            id=entry.id,
            lease_id=entry.lease_id,
            property_id=lease.property_id,
            tenant_id=lease.tenant_id,
            due_date=entry.due_date,
            expected_amount=entry.expected_amount,
            paid_amount=entry.paid_amount,
            status=entry.status,
        )
