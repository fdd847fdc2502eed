"""
Module: rent_kernel.models.cheque
Responsibility: ORM persistence for post-dated cheques.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling model modules only.

Invariants enforced:
    - status changes only through ChequeLifecycleService, which validates
      every move against the transition table.
    - replaced_by_cheque_id points at another cheque row.
    - tenant_id and property_id are copied from the lease at creation.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rent_kernel.db.base import TrackedBase, UUIDString
from rent_kernel.models.lease import Lease


class Cheque(TrackedBase):
    """A cheque received against a lease."""

    __tablename__ = "cheques"

    __table_args__ = (
        Index("idx_cheque_lease", "lease_id"),
        Index("idx_cheque_status", "status"),
        Index("idx_cheque_date", "cheque_date"),
        Index("idx_cheque_owner", "owner_id"),
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
    cheque_number: Mapped[str] = mapped_column(String(50), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False)
    cheque_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    covers_period: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="RECEIVED",
    )
    deposit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    cleared_or_bounce_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bounce_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    replaced_by_cheque_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("cheques.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    lease: Mapped[Lease] = relationship(Lease)

    def __repr__(self) -> str:
        return f"<Cheque #{self.cheque_number} {self.status}>"
