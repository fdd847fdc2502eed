"""
Module: rent_kernel.models.lease
Responsibility: ORM persistence for leases and their generated rent
    schedule entries.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - end_date > start_date (check constraint, and validated upstream by
      LeaseLifecycleService with a typed error).
    - due_day within 1..31 at the row level; the service narrows it to the
      configured maximum.
    - Schedule entries are owned by their lease: deleting a lease removes
      them via ON DELETE CASCADE, and their payment matches with them.
    - Schedule status and paid_amount are derived; only the payment
      reconciler writes them.

Failure modes:
    - IntegrityError on a check constraint violation.
    - ForeignKey violation on a missing property or tenant.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rent_kernel.db.base import TrackedBase, UUIDString
from rent_kernel.models.property import Property, Tenant


class Lease(TrackedBase):
    """
    Binds one property to one tenant for [start_date, end_date].

    Guarantees:
        - termination_date, once set, lies within [start_date, end_date] and
          is never changed again.
        - rent_frequency is MONTHLY, QUARTERLY, YEARLY or CUSTOM.
        - installment_amount and security_deposit are exact Decimals.
    """

    __tablename__ = "leases"

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_lease_dates"),
        CheckConstraint("due_day >= 1 AND due_day <= 31", name="ck_lease_due_day"),
        Index("idx_lease_property", "property_id"),
        Index("idx_lease_tenant", "tenant_id"),
        Index("idx_lease_owner", "owner_id"),
        Index("idx_lease_window", "property_id", "start_date", "end_date"),
    )

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    property_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("properties.id"),
        nullable=False,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    rent_frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    installment_amount: Mapped[Decimal] = mapped_column(nullable=False)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False)
    security_deposit: Mapped[Decimal | None] = mapped_column(nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    rental_property: Mapped[Property] = relationship(Property)
    tenant: Mapped[Tenant] = relationship(Tenant)

    def __repr__(self) -> str:
        return f"<Lease {self.id} {self.start_date}..{self.end_date}>"


class RentSchedule(TrackedBase):
    """One expected installment of a lease."""

    __tablename__ = "rent_schedules"

    __table_args__ = (
        Index("idx_schedule_lease_due", "lease_id", "due_date"),
        Index("idx_schedule_status", "status"),
    )

    lease_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("leases.id", ondelete="CASCADE"),
        nullable=False,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_amount: Mapped[Decimal] = mapped_column(nullable=False)
    paid_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DUE")

    lease: Mapped[Lease] = relationship(Lease)

    def __repr__(self) -> str:
        return f"<RentSchedule {self.due_date} {self.expected_amount} {self.status}>"
