"""
ChequePaymentBackfill -- derive missing payments for CLEARED cheques.

Cheques that reached CLEARED while the payment side effect failed (or
before it existed) have no linked payment.  The backfill finds every such
non-archived cheque and runs the same idempotent derivation the cheque
service uses on a live transition: one payment, auto-matched
oldest-due-first.

A failure on one cheque is logged and counted; the run moves on.  Each
cheque is processed inside its own SAVEPOINT, so a failed cheque leaves no
partial rows behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select

from rent_kernel.domain.cheque_states import ChequeStatus
from rent_kernel.domain.dtos import Caller, CallerRole
from rent_kernel.exceptions import RentKernelError
from rent_kernel.logging_config import LogContext, get_logger
from rent_kernel.models import Cheque, Payment, Property
from rent_services.orchestrator import RentOrchestrator

logger = get_logger("services.backfill")


@dataclass
class BackfillReport:
    found: int = 0
    created: int = 0
    failed: int = 0
    created_payment_ids: list[UUID] = field(default_factory=list)
    failed_cheque_ids: list[UUID] = field(default_factory=list)


class ChequePaymentBackfill:
    def __init__(self, orchestrator: RentOrchestrator):
        self.rent = orchestrator
        self.session = orchestrator.session

    def pending_cheques(self) -> list[tuple[Cheque, UUID]]:
        """CLEARED, non-archived cheques without a payment, with their owner."""
        stmt = (
            select(Cheque, Property.owner_id)
            .join(Property, Cheque.property_id == Property.id)
            .outerjoin(Payment, Payment.cheque_id == Cheque.id)
            .where(
                Cheque.status == ChequeStatus.CLEARED.value,
                Cheque.archived_at.is_(None),
                Payment.id.is_(None),
            )
            .order_by(Cheque.cheque_date, Cheque.cheque_number)
        )
        return [(cheque, owner_id) for cheque, owner_id in self.session.execute(stmt)]

    def run(self, caller: Caller | None = None, dry_run: bool = False) -> BackfillReport:
        """
        Create the missing payments.

        Without ``caller`` each cheque is processed as its property's owner.
        With ``dry_run`` nothing is written; ``found`` is still reported.
        """
        pending = self.pending_cheques()
        report = BackfillReport(found=len(pending))
        logger.info(
            "cheque_backfill_started",
            extra={"found": report.found, "dry_run": dry_run},
        )
        if dry_run:
            return report

        for cheque, owner_id in pending:
            acting = caller or Caller(user_id=owner_id, role=CallerRole.OWNER)
            with LogContext.bind(cheque_id=cheque.id, actor_id=acting.user_id):
                try:
                    result = self.rent.cheques.ensure_cheque_payment(acting, cheque.id)
                except RentKernelError:
                    logger.warning("cheque_backfill_failed", exc_info=True)
                    report.failed += 1
                    report.failed_cheque_ids.append(cheque.id)
                    continue

                if result.payment is None:
                    logger.warning(
                        "cheque_backfill_failed",
                        extra={"warnings": list(result.warnings)},
                    )
                    report.failed += 1
                    report.failed_cheque_ids.append(cheque.id)
                    continue

                report.created += 1
                report.created_payment_ids.append(result.payment.id)
                logger.info(
                    "cheque_backfilled",
                    extra={
                        "payment_id": str(result.payment.id),
                        "cheque_number": cheque.cheque_number,
                    },
                )

        logger.info(
            "cheque_backfill_finished",
            extra={
                "found": report.found,
                "payments_created": report.created,
                "failed": report.failed,
            },
        )
        return report
