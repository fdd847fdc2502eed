"""
rent_services.orchestrator -- central wiring of rent kernel services.

Responsibility:
    Creates every kernel service and selector exactly once for a session
    and feeds them the values from ``EngineSettings``.  This is the only
    place where settings reach the kernel.

Invariants enforced:
    - All services share one Session, one Clock and one AccessPolicy.
    - The cheque service uses the same PaymentReconciler instance as
      direct payment entry, so both paths allocate identically.

Failure modes:
    - Propagates ``FileNotFoundError`` / ``ValueError`` from settings
      loading when no settings object is supplied.

Usage:
    with session_scope() as session:
        rent = RentOrchestrator(session)
        result = rent.cheques.transition(caller, cheque_id, "CLEARED")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from uuid import UUID

from sqlalchemy.orm import Session

from rent_config import EngineSettings, get_active_settings
from rent_kernel.domain.clock import Clock, SystemClock
from rent_kernel.selectors import ChequeSelector, PaymentSelector, ScheduleSelector
from rent_kernel.services import (
    AccessPolicy,
    ChequeLifecycleService,
    LeaseLifecycleService,
    OwnerScopeAccessPolicy,
    PaymentReconciler,
    PropertyOccupancyService,
)


class RentOrchestrator:
    """
    Factory for the rent kernel services of one session.

    Non-goals:
        - Does NOT manage transaction boundaries (caller's responsibility).
    """

    def __init__(
        self,
        session: Session,
        settings: EngineSettings | None = None,
        access: AccessPolicy | None = None,
        clock: Clock | None = None,
        delegations: Mapping[UUID, Iterable[UUID]] | None = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_active_settings()
        self.clock = clock or SystemClock()
        self.access = access or OwnerScopeAccessPolicy(session, delegations)

        self.occupancy = PropertyOccupancyService(session, self.clock)
        self.payments = PaymentReconciler(
            session,
            self.access,
            clock=self.clock,
            recompute_on_delete=self.settings.recompute_on_payment_delete,
        )
        self.leases = LeaseLifecycleService(
            session,
            self.access,
            clock=self.clock,
            occupancy=self.occupancy,
            max_due_day=self.settings.max_due_day,
        )
        self.cheques = ChequeLifecycleService(
            session,
            self.access,
            reconciler=self.payments,
            clock=self.clock,
            payment_method=self.settings.cheque_payment_method,
            reference_template=self.settings.cheque_reference_template,
        )

        self.schedule_selector = ScheduleSelector(session, self.access, self.clock)
        self.cheque_selector = ChequeSelector(
            session,
            self.access,
            self.clock,
            windows=self.settings.upcoming_cheque_windows,
        )
        self.payment_selector = PaymentSelector(session, self.clock)
