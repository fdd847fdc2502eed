"""Cheque queries: upcoming cheques inside a look-ahead window."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from rent_kernel.domain.clock import Clock
from rent_kernel.domain.dtos import Caller
from rent_kernel.models import Cheque
from rent_kernel.selectors.base import BaseSelector
from rent_kernel.services.access import AccessPolicy

DEFAULT_WINDOWS: tuple[int, ...] = (30, 60, 90)


@dataclass(frozen=True)
class UpcomingChequeDTO:
    id: UUID
    lease_id: UUID
    property_id: UUID
    tenant_id: UUID
    cheque_number: str
    bank_name: str
    cheque_date: date
    amount: Decimal
    covers_period: str
    status: str
    days_until: int


class ChequeSelector(BaseSelector[Cheque]):
    def __init__(
        self,
        session: Session,
        access: AccessPolicy,
        clock: Clock | None = None,
        windows: Sequence[int] = DEFAULT_WINDOWS,
    ):
        super().__init__(session, clock)
        self.access = access
        self.windows = tuple(windows)

    def upcoming(
        self,
        caller: Caller,
        days: int,
        property_id: UUID | None = None,
    ) -> list[UpcomingChequeDTO]:
        """
        Non-archived cheques dated between today and today + ``days``
        inclusive, earliest first.

        Raises:
            ValueError: ``days`` is not one of the configured windows.
        """
        if days not in self.windows:
            raise ValueError(
                f"days must be one of {', '.join(str(w) for w in self.windows)}, "
                f"got {days}"
            )
        accessible = self.access.accessible_property_ids(caller)
        if property_id is not None:
            accessible = [property_id] if property_id in accessible else []
        if not accessible:
            return []

        today = self.clock.today()
        stmt = (
            select(Cheque)
            .where(
                Cheque.property_id.in_(accessible),
                Cheque.archived_at.is_(None),
                Cheque.cheque_date >= today,
                Cheque.cheque_date <= today + timedelta(days=days),
            )
            .order_by(Cheque.cheque_date, Cheque.cheque_number)
        )
        return [
            UpcomingChequeDTO(
                id=c.id,
                lease_id=c.lease_id,
                property_id=c.property_id,
                tenant_id=c.tenant_id,
                cheque_number=c.cheque_number,
                bank_name=c.bank_name,
                cheque_date=c.cheque_date,
                amount=c.amount,
                covers_period=c.covers_period,
                status=c.status,
                days_until=(c.cheque_date - today).days,
            )
            for c in self.session.scalars(stmt)
        ]
