"""
Inbound value objects for the rent kernel services.

Frozen dataclasses only -- no I/O, no ORM.  Services translate these into
ORM rows after validation.
"""

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from rent_kernel.domain.schedule import RentFrequency


class CallerRole(str, Enum):
    OWNER = "OWNER"
    SUPER_ADMIN = "SUPER_ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"


OWNER_SCOPE_ROLES: frozenset[CallerRole] = frozenset(
    {CallerRole.OWNER, CallerRole.SUPER_ADMIN}
)


@dataclass(frozen=True)
class Caller:
    """Who is asking.  ``user_id`` doubles as the audit actor id."""

    user_id: UUID
    role: CallerRole = CallerRole.OWNER

    @property
    def is_owner_scope(self) -> bool:
        """True for direct owners; False for scoped delegates."""
        return CallerRole(self.role) in OWNER_SCOPE_ROLES


@dataclass(frozen=True)
class LeaseTerms:
    """Everything needed to create a lease."""

    property_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    rent_frequency: RentFrequency
    installment_amount: Decimal | int | str
    due_day: int
    security_deposit: Decimal | int | str | None = None
    notes: str | None = None


# Optional lease fields an update may blank out through ``LeaseChanges.clear``.
CLEARABLE_LEASE_FIELDS: frozenset[str] = frozenset({"security_deposit", "notes"})


@dataclass(frozen=True)
class LeaseChanges:
    """
    Partial lease update.  ``None`` means "keep the current value".

    Fields named in ``clear`` are set to NULL instead; only
    CLEARABLE_LEASE_FIELDS may be cleared.
    """

    property_id: UUID | None = None
    tenant_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    rent_frequency: RentFrequency | None = None
    installment_amount: Decimal | int | str | None = None
    due_day: int | None = None
    security_deposit: Decimal | int | str | None = None
    notes: str | None = None
    clear: frozenset[str] = frozenset()

    def provided(self) -> dict[str, object]:
        """Only the fields the caller actually set, cleared fields as None."""
        values: dict[str, object] = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "clear" and getattr(self, f.name) is not None
        }
        for name in self.clear:
            values[name] = None
        return values


@dataclass(frozen=True)
class MatchRequest:
    """One (schedule entry, amount) pair of a manual match."""

    rent_schedule_id: UUID
    amount: Decimal | int | str
