"""
Kernel Invariants Contract.

These invariants are structural law.  No EngineSettings value may switch
them off.  This module only names them; enforcement lives in the services,
the domain rules and the database constraints listed on each member.
"""

from enum import Enum, unique


@unique
class RentInvariant(str, Enum):
    """Non-configurable invariants enforced by the rent kernel."""

    LEASE_WINDOW = "lease_window"
    """end_date > start_date.  Enforced by LeaseLifecycleService and the
    ck_lease_dates check constraint."""

    NO_OVERLAP = "no_overlap"
    """No two non-archived leases on one property share a day.  Enforced by
    LeaseLifecycleService on create, update and restore."""

    TERMINATION_WRITE_ONCE = "termination_write_once"
    """termination_date lies within the lease window and is set at most
    once.  Enforced by LeaseLifecycleService.terminate_early."""

    CHEQUE_TRANSITIONS = "cheque_transitions"
    """Cheque status follows the transition table.  Enforced by
    rent_kernel.domain.cheque_states."""

    ONE_PAYMENT_PER_CHEQUE = "one_payment_per_cheque"
    """A cheque yields at most one payment.  Enforced by the
    uq_payment_cheque unique constraint."""

    MATCH_CONSERVATION = "match_conservation"
    """A payment's matches never sum above its amount.  Enforced by the
    allocation rules and PaymentReconciler."""

    DERIVED_STATUS = "derived_status"
    """Schedule status and occupancy are recomputed from source facts, never
    set directly.  Enforced by PaymentReconciler and
    PropertyOccupancyService."""

    EXACT_MONEY = "exact_money"
    """Amounts are Decimal end to end.  Enforced by db.types.to_money and
    Numeric(38, 9) columns."""


ALL_RENT_INVARIANTS: frozenset[RentInvariant] = frozenset(RentInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_rent_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "rent_services",
    "rent_config",
)
