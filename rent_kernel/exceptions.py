"""
Typed Exception Hierarchy for the Rent Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, scripts, tests) must react to a failure by its
kind, not by parsing message text:

    try:
        leases.terminate_early(caller, lease_id, termination_date)
    except LeaseAlreadyTerminatedError as e:
        api_response(code=e.code, lease=e.lease_id)

Every exception has a CODE class attribute (machine-readable, API-safe) and
carries the offending entity ids / field values as attributes, so the
structured log formatter and API layer can surface them without string
matching.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RentKernelError (base)
    |
    +-- NotFoundError
    |   +-- PropertyNotFoundError
    |   +-- TenantNotFoundError
    |   +-- LeaseNotFoundError
    |   +-- ChequeNotFoundError
    |   +-- PaymentNotFoundError
    |   +-- ScheduleEntryNotFoundError
    |
    +-- InvalidTransitionError
    |   +-- MissingReplacementChequeError
    |
    +-- InvalidRangeError
    |   +-- InvalidLeaseDatesError
    |   +-- TerminationOutOfRangeError
    |   +-- LeaseAlreadyTerminatedError
    |
    +-- LeaseOverlapError
    +-- OverAllocationError
    +-- MismatchedLeaseError
    +-- InvalidLeaseTermsError
    +-- InvalidAmountError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | PROPERTY_NOT_FOUND          | Missing or outside caller's scope
                | TENANT_NOT_FOUND            | Missing or owned by another owner
                | LEASE_NOT_FOUND             | Missing or outside caller's scope
                | CHEQUE_NOT_FOUND            | Missing or outside caller's scope
                | PAYMENT_NOT_FOUND           | Missing or outside caller's scope
                | SCHEDULE_ENTRY_NOT_FOUND    | Match references unknown entry
----------------|-----------------------------|-----------------------------------------
Cheque          | INVALID_TRANSITION          | Status change not in transition table
                | MISSING_REPLACEMENT_CHEQUE  | REPLACED without replacement id
----------------|-----------------------------|-----------------------------------------
Range           | INVALID_LEASE_DATES         | endDate <= startDate
                | TERMINATION_OUT_OF_RANGE    | terminationDate outside lease window
                | LEASE_ALREADY_TERMINATED    | terminationDate is write-once
----------------|-----------------------------|-----------------------------------------
Lease           | LEASE_OVERLAP               | Window intersects another live lease
                | INVALID_LEASE_TERMS         | dueDay / frequency / amount invalid
----------------|-----------------------------|-----------------------------------------
Payment         | OVER_ALLOCATION             | Sum of matches exceeds payment amount
                | MISMATCHED_LEASE            | Entry belongs to a different lease
                | INVALID_AMOUNT              | Negative, float or non-finite amount

NotFound deliberately covers "exists but inaccessible": callers must not be
able to probe for records outside their access scope.
"""

from datetime import date


class RentKernelError(Exception):
    """
    Base exception for all rent kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RENT_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(RentKernelError):
    """Referenced record does not exist or is outside the caller's scope."""

    code: str = "NOT_FOUND"
    entity: str = "Record"

    def __init__(self, entity_id: str):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity} not found: {self.entity_id}")


class PropertyNotFoundError(NotFoundError):
    code: str = "PROPERTY_NOT_FOUND"
    entity: str = "Property"


class TenantNotFoundError(NotFoundError):
    code: str = "TENANT_NOT_FOUND"
    entity: str = "Tenant"


class LeaseNotFoundError(NotFoundError):
    code: str = "LEASE_NOT_FOUND"
    entity: str = "Lease"


class ChequeNotFoundError(NotFoundError):
    code: str = "CHEQUE_NOT_FOUND"
    entity: str = "Cheque"


class PaymentNotFoundError(NotFoundError):
    code: str = "PAYMENT_NOT_FOUND"
    entity: str = "Payment"


class ScheduleEntryNotFoundError(NotFoundError):
    code: str = "SCHEDULE_ENTRY_NOT_FOUND"
    entity: str = "RentSchedule"


# Cheque state machine


class InvalidTransitionError(RentKernelError):
    """Cheque status change is not permitted from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        cheque_id: str | None,
        current: str,
        target: str,
        message: str | None = None,
    ):
        self.cheque_id = str(cheque_id) if cheque_id is not None else None
        self.current = current
        self.target = target
        super().__init__(
            message
            or f"Invalid status transition from {current} to {target}"
            + (f" for cheque {self.cheque_id}" if self.cheque_id else "")
        )


class MissingReplacementChequeError(InvalidTransitionError):
    """REPLACED requires the id of the replacing cheque."""

    code: str = "MISSING_REPLACEMENT_CHEQUE"

    def __init__(self, cheque_id: str | None, current: str):
        super().__init__(
            cheque_id,
            current,
            "REPLACED",
            message="replaced_by_cheque_id is required when status is REPLACED",
        )


# Date range exceptions


class InvalidRangeError(RentKernelError):
    """Base exception for lease date-range violations."""

    code: str = "INVALID_RANGE"


class InvalidLeaseDatesError(InvalidRangeError):
    """Lease end date is not after its start date."""

    code: str = "INVALID_LEASE_DATES"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"end_date must be after start_date "
            f"(start_date={start_date}, end_date={end_date})"
        )


class TerminationOutOfRangeError(InvalidRangeError):
    """Termination date falls outside [start_date, end_date]."""

    code: str = "TERMINATION_OUT_OF_RANGE"

    def __init__(
        self,
        lease_id: str,
        termination_date: date,
        start_date: date,
        end_date: date,
    ):
        self.lease_id = str(lease_id)
        self.termination_date = termination_date
        self.start_date = start_date
        self.end_date = end_date
        bound = (
            "on or after lease start_date"
            if termination_date < start_date
            else "on or before lease end_date"
        )
        super().__init__(
            f"termination_date {termination_date} must be {bound} "
            f"({start_date}..{end_date})"
        )


class LeaseAlreadyTerminatedError(InvalidRangeError):
    """A lease may only be terminated once."""

    code: str = "LEASE_ALREADY_TERMINATED"

    def __init__(self, lease_id: str, termination_date: date):
        self.lease_id = str(lease_id)
        self.termination_date = termination_date
        super().__init__(
            f"Lease {self.lease_id} is already terminated "
            f"(termination_date={termination_date})"
        )


# Lease exceptions


class LeaseOverlapError(RentKernelError):
    """Lease window intersects another non-archived lease on the property."""

    code: str = "LEASE_OVERLAP"

    def __init__(
        self,
        property_id: str,
        conflicting_lease_id: str,
        start_date: date,
        end_date: date,
    ):
        self.property_id = str(property_id)
        self.conflicting_lease_id = str(conflicting_lease_id)
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Property {self.property_id} already has an overlapping active "
            f"lease {self.conflicting_lease_id} for {start_date}..{end_date}"
        )


class InvalidLeaseTermsError(RentKernelError):
    """A lease term field holds an unusable value."""

    code: str = "INVALID_LEASE_TERMS"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid lease {field}={value!r}: {reason}")


# Payment exceptions


class OverAllocationError(RentKernelError):
    """Matched amounts exceed the payment's total amount."""

    code: str = "OVER_ALLOCATION"

    def __init__(self, payment_id: str, requested: str, available: str):
        self.payment_id = str(payment_id)
        self.requested = requested
        self.available = available
        super().__init__(
            f"Total applied amount {requested} exceeds payment "
            f"{self.payment_id} amount {available}"
        )


class MismatchedLeaseError(RentKernelError):
    """Schedule entry does not belong to the payment's lease."""

    code: str = "MISMATCHED_LEASE"

    def __init__(
        self,
        rent_schedule_id: str,
        schedule_lease_id: str,
        payment_lease_id: str,
    ):
        self.rent_schedule_id = str(rent_schedule_id)
        self.schedule_lease_id = str(schedule_lease_id)
        self.payment_lease_id = str(payment_lease_id)
        super().__init__(
            f"RentSchedule {self.rent_schedule_id} belongs to lease "
            f"{self.schedule_lease_id}, not payment lease {self.payment_lease_id}"
        )


class InvalidAmountError(RentKernelError):
    """Monetary input is not an exact, finite, non-negative decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")
