"""
Property occupancy rule -- pure functions, zero I/O.

A lease keeps its property occupied while it is not archived, has not ended
(end_date >= today) and is not terminated as of today (no termination date,
or a termination date still in the future).  A lease that starts in the
future already counts.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable


class OccupancyStatus(str, Enum):
    VACANT = "VACANT"
    OCCUPIED = "OCCUPIED"


@dataclass(frozen=True)
class LeaseWindow:
    """The facts about a lease that decide whether it is active."""

    end_date: date
    termination_date: date | None = None
    archived_at: datetime | None = None


def is_lease_active(lease: LeaseWindow, today: date) -> bool:
    if lease.archived_at is not None:
        return False
    if lease.end_date < today:
        return False
    return lease.termination_date is None or lease.termination_date > today


def derive_occupancy(leases: Iterable[LeaseWindow], today: date) -> OccupancyStatus:
    """OCCUPIED iff at least one lease is active today."""
    if any(is_lease_active(lease, today) for lease in leases):
        return OccupancyStatus.OCCUPIED
    return OccupancyStatus.VACANT
