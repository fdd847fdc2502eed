"""
Module: rent_kernel.models.payment
Responsibility: ORM persistence for received payments and their allocation
    to rent schedule entries.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling model modules only.

Invariants enforced:
    - At most one payment per cheque (uq_payment_cheque).  The cheque
      service relies on this constraint, not on a prior existence read, to
      keep cheque-derived payments idempotent.
    - At most one match row per (payment, schedule entry)
      (uq_match_payment_schedule).
    - Matches disappear with either parent (ON DELETE CASCADE).
    - Deleting a cheque leaves its payment in place with cheque_id cleared
      (ON DELETE SET NULL).

Failure modes:
    - IntegrityError on a duplicate cheque_id or duplicate match pair.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rent_kernel.db.base import TrackedBase, UUIDString
from rent_kernel.models.cheque import Cheque
from rent_kernel.models.lease import Lease, RentSchedule


class PaymentMethod(str, Enum):
    """How funds were received."""

    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    CARD = "CARD"
    UPI = "UPI"
    OTHER = "OTHER"


class Payment(TrackedBase):
    """Funds received against a lease."""

    __tablename__ = "payments"

    __table_args__ = (
        UniqueConstraint("cheque_id", name="uq_payment_cheque"),
        Index("idx_payment_lease", "lease_id"),
        Index("idx_payment_owner", "owner_id"),
        Index("idx_payment_date", "payment_date"),
    )

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    lease_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("leases.id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id"),
        nullable=False,
    )
    property_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("properties.id"),
        nullable=False,
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cheque_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("cheques.id", ondelete="SET NULL"),
        nullable=True,
    )
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    lease: Mapped[Lease] = relationship(Lease)
    cheque: Mapped[Cheque | None] = relationship(Cheque)

    def __repr__(self) -> str:
        return f"<Payment {self.payment_date} {self.amount} {self.method}>"


class PaymentScheduleMatch(TrackedBase):
    """How much of one payment was applied to one schedule entry."""

    __tablename__ = "payment_schedule_matches"

    __table_args__ = (
        UniqueConstraint(
            "payment_id",
            "rent_schedule_id",
            name="uq_match_payment_schedule",
        ),
        Index("idx_match_schedule", "rent_schedule_id"),
    )

    payment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
    )
    rent_schedule_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rent_schedules.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    payment: Mapped[Payment] = relationship(Payment)
    rent_schedule: Mapped[RentSchedule] = relationship(RentSchedule)
