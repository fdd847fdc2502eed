"""Write-side services of the rent kernel."""

from rent_kernel.services.access import AccessPolicy, OwnerScopeAccessPolicy
from rent_kernel.services.cheque_service import (
    ChequeLifecycleService,
    ChequeTransitionResult,
)
from rent_kernel.services.lease_service import LeaseLifecycleService
from rent_kernel.services.occupancy_service import PropertyOccupancyService
from rent_kernel.services.payment_reconciler import PaymentReconciler

__all__ = [
    "AccessPolicy",
    "OwnerScopeAccessPolicy",
    "ChequeLifecycleService",
    "ChequeTransitionResult",
    "LeaseLifecycleService",
    "PropertyOccupancyService",
    "PaymentReconciler",
]
