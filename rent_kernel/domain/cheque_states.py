"""
Cheque state machine -- transition table and validation, zero I/O.

    RECEIVED -> DEPOSITED -> CLEARED
                          -> BOUNCED -> REPLACED

CLEARED and REPLACED are terminal.  Applying a transition (and the payment
side effect of CLEARED) is the job of ``ChequeLifecycleService``; this module
only answers whether a move is legal.
"""

from enum import Enum
from uuid import UUID

from rent_kernel.exceptions import (
    InvalidTransitionError,
    MissingReplacementChequeError,
)


class ChequeStatus(str, Enum):
    RECEIVED = "RECEIVED"
    DEPOSITED = "DEPOSITED"
    CLEARED = "CLEARED"
    BOUNCED = "BOUNCED"
    REPLACED = "REPLACED"


VALID_TRANSITIONS: dict[ChequeStatus, frozenset[ChequeStatus]] = {
    ChequeStatus.RECEIVED: frozenset({ChequeStatus.DEPOSITED}),
    ChequeStatus.DEPOSITED: frozenset({ChequeStatus.CLEARED, ChequeStatus.BOUNCED}),
    ChequeStatus.CLEARED: frozenset(),
    ChequeStatus.BOUNCED: frozenset({ChequeStatus.REPLACED}),
    ChequeStatus.REPLACED: frozenset(),
}

TERMINAL_STATUSES: frozenset[ChequeStatus] = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)


def allowed_transitions(current: ChequeStatus | str) -> frozenset[ChequeStatus]:
    """Statuses reachable in one step from ``current``."""
    return VALID_TRANSITIONS[ChequeStatus(current)]


def is_terminal(status: ChequeStatus | str) -> bool:
    return ChequeStatus(status) in TERMINAL_STATUSES


def assert_valid_transition(
    current: ChequeStatus | str,
    target: ChequeStatus | str,
    replaced_by_cheque_id: UUID | None = None,
    cheque_id: UUID | None = None,
) -> ChequeStatus:
    """
    Validate a single cheque status change.

    Returns:
        The target as a ``ChequeStatus``.

    Raises:
        InvalidTransitionError: target not in the allowed set for current.
        MissingReplacementChequeError: target is REPLACED without a
            replacement cheque id.
    """
    current_status = ChequeStatus(current)
    target_status = ChequeStatus(target)
    if target_status not in VALID_TRANSITIONS[current_status]:
        raise InvalidTransitionError(
            cheque_id, current_status.value, target_status.value
        )
    if target_status is ChequeStatus.REPLACED and replaced_by_cheque_id is None:
        raise MissingReplacementChequeError(cheque_id, current_status.value)
    return target_status
