"""
Module: rent_kernel.models.property
Responsibility: ORM persistence for owner-scoped rentable assets and the
    tenants that lease them.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - occupancy_status is a derived cache; only PropertyOccupancyService
      writes it.
    - owner_id is the opaque access-scope key used by the access policy.

Failure modes:
    - ForeignKey violation when a lease references a missing property or
      tenant.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from rent_kernel.db.base import TrackedBase, UUIDString


class Property(TrackedBase):
    """
    A rentable asset belonging to one owner.

    Guarantees:
        - country is an ISO 3166 alpha-2 code, currency an ISO 4217 code.
        - occupancy_status is VACANT or OCCUPIED.
        - archived_at is the soft-delete marker.
    """

    __tablename__ = "properties"

    __table_args__ = (
        Index("idx_property_owner", "owner_id"),
        Index("idx_property_archived", "archived_at"),
    )

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str] = mapped_column(String(2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    occupancy_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="VACANT",
    )
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Property {self.name} ({self.occupancy_status})>"


class Tenant(TrackedBase):
    """
    A person renting from an owner.

    A tenant row belongs to one owner, but may be reached through a lease by
    a property manager acting for that owner.
    """

    __tablename__ = "tenants"

    __table_args__ = (Index("idx_tenant_owner", "owner_id"),)

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.name}>"
