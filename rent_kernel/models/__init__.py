"""ORM models for the rent kernel."""

from rent_kernel.models.cheque import Cheque
from rent_kernel.models.lease import Lease, RentSchedule
from rent_kernel.models.payment import Payment, PaymentMethod, PaymentScheduleMatch
from rent_kernel.models.property import Property, Tenant

__all__ = [
    "Property",
    "Tenant",
    "Lease",
    "RentSchedule",
    "Cheque",
    "Payment",
    "PaymentMethod",
    "PaymentScheduleMatch",
]
