"""Pure domain layer: rules and value objects with zero I/O."""

from rent_kernel.domain.allocation import (
    Allocation,
    AllocationResult,
    OpenEntry,
    allocate_oldest_first,
    validate_manual_allocation,
)
from rent_kernel.domain.cheque_states import (
    VALID_TRANSITIONS,
    ChequeStatus,
    allowed_transitions,
    assert_valid_transition,
)
from rent_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from rent_kernel.domain.dtos import (
    Caller,
    CallerRole,
    LeaseChanges,
    LeaseTerms,
    MatchRequest,
)
from rent_kernel.domain.occupancy import (
    LeaseWindow,
    OccupancyStatus,
    derive_occupancy,
    is_lease_active,
)
from rent_kernel.domain.schedule import (
    RentFrequency,
    ScheduleLine,
    generate_due_dates,
    generate_schedule,
)
from rent_kernel.domain.schedule_status import (
    ScheduleStatus,
    derive_schedule_state,
    derive_schedule_status,
)

__all__ = [
    "Allocation",
    "AllocationResult",
    "OpenEntry",
    "allocate_oldest_first",
    "validate_manual_allocation",
    "VALID_TRANSITIONS",
    "ChequeStatus",
    "allowed_transitions",
    "assert_valid_transition",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Caller",
    "CallerRole",
    "LeaseChanges",
    "LeaseTerms",
    "MatchRequest",
    "LeaseWindow",
    "OccupancyStatus",
    "derive_occupancy",
    "is_lease_active",
    "RentFrequency",
    "ScheduleLine",
    "generate_due_dates",
    "generate_schedule",
    "ScheduleStatus",
    "derive_schedule_state",
    "derive_schedule_status",
]
