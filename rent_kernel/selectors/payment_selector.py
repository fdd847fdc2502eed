"""Payment allocation queries."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from rent_kernel.db.types import ZERO
from rent_kernel.exceptions import PaymentNotFoundError
from rent_kernel.models import Payment, PaymentScheduleMatch, RentSchedule
from rent_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ScheduleMatchDTO:
    """One slice of a payment applied to one schedule entry."""

    payment_id: UUID
    rent_schedule_id: UUID
    due_date: date
    expected_amount: Decimal
    amount: Decimal


class PaymentSelector(BaseSelector[Payment]):
    def matches_for_payment(self, payment_id: UUID) -> list[ScheduleMatchDTO]:
        """A payment's matches ordered by the due date of their entries."""
        stmt = (
            select(PaymentScheduleMatch, RentSchedule)
            .join(RentSchedule, PaymentScheduleMatch.rent_schedule_id == RentSchedule.id)
            .where(PaymentScheduleMatch.payment_id == payment_id)
            .order_by(RentSchedule.due_date)
        )
        return [
            ScheduleMatchDTO(
                payment_id=match.payment_id,
                rent_schedule_id=match.rent_schedule_id,
                due_date=entry.due_date,
                expected_amount=entry.expected_amount,
                amount=match.amount,
            )
            for match, entry in self.session.execute(stmt)
        ]

    def unallocated_amount(self, payment_id: UUID) -> Decimal:
        """Part of the payment not applied to any schedule entry."""
        payment = self.session.get(Payment, payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        allocated = sum(
            self.session.scalars(
                select(PaymentScheduleMatch.amount).where(
                    PaymentScheduleMatch.payment_id == payment_id
                )
            ),
            ZERO,
        )
        return payment.amount - allocated
