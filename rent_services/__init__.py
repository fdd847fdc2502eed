"""
rent_services -- orchestration above the rent kernel.

Dependency direction (enforced by tests/architecture/test_rent_kernel_boundary.py):
    rent_services/ -> rent_kernel/, rent_config/  (allowed)
    rent_kernel/   -> rent_services/               (FORBIDDEN)
"""

from rent_services.backfill import BackfillReport, ChequePaymentBackfill
from rent_services.orchestrator import RentOrchestrator

__all__ = [
    "BackfillReport",
    "ChequePaymentBackfill",
    "RentOrchestrator",
]
