"""
PropertyOccupancyService -- keeps ``Property.occupancy_status`` in step
with the leases on a property.

Responsibility:
    Full recompute of one property's occupancy from its non-archived
    leases, using the pure rule in ``rent_kernel.domain.occupancy``.

Invariants enforced:
    - This service is the only writer of ``occupancy_status``.
    - Every call re-reads the leases; there is no incremental counter to
      drift.
"""

from uuid import UUID

from sqlalchemy import select

from rent_kernel.domain.occupancy import LeaseWindow, OccupancyStatus, derive_occupancy
from rent_kernel.exceptions import PropertyNotFoundError
from rent_kernel.logging_config import get_logger
from rent_kernel.models import Lease, Property
from rent_kernel.services.base import BaseService

logger = get_logger("services.occupancy")


class PropertyOccupancyService(BaseService[Property]):
    """Derives VACANT / OCCUPIED for a property."""

    def recompute(
        self,
        property_id: UUID,
        exclude_lease_id: UUID | None = None,
    ) -> OccupancyStatus:
        """
        Re-derive and store the property's occupancy status.

        ``exclude_lease_id`` leaves one lease out of the scan, for callers
        that are about to remove or move that lease.
        """
        prop = self.session.get(Property, property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)

        stmt = select(Lease).where(
            Lease.property_id == property_id,
            Lease.archived_at.is_(None),
        )
        if exclude_lease_id is not None:
            stmt = stmt.where(Lease.id != exclude_lease_id)

        windows = [
            LeaseWindow(
                end_date=lease.end_date,
                termination_date=lease.termination_date,
                archived_at=lease.archived_at,
            )
            for lease in self.session.scalars(stmt)
        ]
        status = derive_occupancy(windows, self.clock.today())

        if prop.occupancy_status != status.value:
            logger.info(
                "occupancy_changed",
                extra={
                    "property_id": str(property_id),
                    "from_status": prop.occupancy_status,
                    "to_status": status.value,
                },
            )
            prop.occupancy_status = status.value
            self.session.flush()
        return status
