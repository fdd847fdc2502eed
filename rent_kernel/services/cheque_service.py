"""
ChequeLifecycleService -- moves post-dated cheques through their state
machine and derives a payment when one clears.

Responsibility:
    - Create cheques against a lease (status RECEIVED).
    - Apply validated status transitions
      (``rent_kernel.domain.cheque_states``).
    - On CLEARED, create exactly one payment for the cheque and auto-match
      it through the PaymentReconciler.

Invariants enforced:
    - Status only changes through ``transition``; detail edits never touch
      it.
    - One payment per cheque.  The payments table carries a unique
      constraint on cheque_id; a violation inside the side effect means a
      concurrent or earlier run already created it, and is treated as
      success.
    - The payment side effect runs in a SAVEPOINT.  If it fails, only the
      savepoint is rolled back: the status change stands and the failure is
      logged and returned as a warning.

Failure modes:
    - ChequeNotFoundError: cheque (or replacement cheque) missing or
      inaccessible.
    - InvalidTransitionError / MissingReplacementChequeError: rejected move.
    - LeaseNotFoundError, InvalidAmountError on creation.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rent_kernel.db.types import money_text, to_money
from rent_kernel.domain.cheque_states import ChequeStatus, assert_valid_transition
from rent_kernel.domain.clock import Clock
from rent_kernel.domain.dtos import Caller
from rent_kernel.exceptions import InvalidTransitionError, RentKernelError
from rent_kernel.logging_config import LogContext, get_logger
from rent_kernel.models import Cheque, Payment, PaymentMethod
from rent_kernel.services.access import AccessPolicy
from rent_kernel.services.base import BaseService
from rent_kernel.services.lookup import get_cheque, get_lease, stamp_owner_id
from rent_kernel.services.payment_reconciler import PaymentReconciler

logger = get_logger("services.cheque")

DEFAULT_REFERENCE_TEMPLATE = "Cheque #{cheque_number} ({bank_name})"


@dataclass(frozen=True)
class ChequeTransitionResult:
    """Outcome of a status change or payment derivation."""

    cheque: Cheque
    payment: Payment | None = None
    warnings: tuple[str, ...] = ()


class ChequeLifecycleService(BaseService[Cheque]):
    """Cheque state machine and its CLEARED -> payment side effect."""

    def __init__(
        self,
        session: Session,
        access: AccessPolicy,
        reconciler: PaymentReconciler | None = None,
        clock: Clock | None = None,
        payment_method: PaymentMethod | str = PaymentMethod.CHEQUE,
        reference_template: str = DEFAULT_REFERENCE_TEMPLATE,
    ):
        super().__init__(session, clock)
        self.access = access
        self.reconciler = reconciler or PaymentReconciler(
            session, access, clock=self.clock
        )
        self.payment_method = PaymentMethod(payment_method)
        self.reference_template = reference_template

    def create_cheque(
        self,
        caller: Caller,
        lease_id: UUID,
        cheque_number: str,
        bank_name: str,
        cheque_date: date,
        amount: Decimal | int | str,
        covers_period: str,
        notes: str | None = None,
    ) -> Cheque:
        lease = get_lease(self.session, self.access, caller, lease_id)
        cheque = Cheque(
            owner_id=stamp_owner_id(caller, lease.rental_property),
            lease_id=lease.id,
            tenant_id=lease.tenant_id,
            property_id=lease.property_id,
            cheque_number=cheque_number,
            bank_name=bank_name,
            cheque_date=cheque_date,
            amount=to_money(amount),
            covers_period=covers_period,
            status=ChequeStatus.RECEIVED.value,
            notes=notes,
            created_by_id=caller.user_id,
        )
        self.session.add(cheque)
        self.session.flush()

        logger.info(
            "cheque_created",
            extra={
                "cheque_id": str(cheque.id),
                "lease_id": str(lease.id),
                "cheque_number": cheque_number,
                "amount": money_text(cheque.amount),
                "cheque_date": cheque_date,
            },
        )
        return cheque

    def update_cheque_details(
        self,
        caller: Caller,
        cheque_id: UUID,
        deposit_date: date | None = None,
        cleared_or_bounce_date: date | None = None,
        bounce_reason: str | None = None,
        notes: str | None = None,
    ) -> Cheque:
        """Edit the non-status fields of a cheque.  ``None`` keeps a value."""
        cheque = get_cheque(self.session, self.access, caller, cheque_id)
        if deposit_date is not None:
            cheque.deposit_date = deposit_date
        if cleared_or_bounce_date is not None:
            cheque.cleared_or_bounce_date = cleared_or_bounce_date
        if bounce_reason is not None:
            cheque.bounce_reason = bounce_reason
        if notes is not None:
            cheque.notes = notes
        cheque.updated_by_id = caller.user_id
        self.session.flush()
        return cheque

    def transition(
        self,
        caller: Caller,
        cheque_id: UUID,
        target: ChequeStatus | str,
        deposit_date: date | None = None,
        cleared_or_bounce_date: date | None = None,
        bounce_reason: str | None = None,
        replaced_by_cheque_id: UUID | None = None,
    ) -> ChequeTransitionResult:
        """
        Move a cheque to ``target`` and record the dates that go with it.

        Reaching CLEARED derives the cheque's payment.  A failure there does
        not undo the transition; it comes back in ``warnings``.
        """
        cheque = get_cheque(self.session, self.access, caller, cheque_id)
        current = cheque.status

        with LogContext.bind(cheque_id=cheque.id, lease_id=cheque.lease_id):
            target_status = assert_valid_transition(
                current, target, replaced_by_cheque_id, cheque_id=cheque.id
            )
            if target_status is ChequeStatus.REPLACED:
                if replaced_by_cheque_id == cheque.id:
                    raise InvalidTransitionError(
                        cheque.id,
                        current,
                        target_status.value,
                        message="a cheque cannot replace itself",
                    )
                get_cheque(self.session, self.access, caller, replaced_by_cheque_id)
                cheque.replaced_by_cheque_id = replaced_by_cheque_id

            cheque.status = target_status.value
            if deposit_date is not None:
                cheque.deposit_date = deposit_date
            if cleared_or_bounce_date is not None:
                cheque.cleared_or_bounce_date = cleared_or_bounce_date
            if bounce_reason is not None:
                cheque.bounce_reason = bounce_reason
            cheque.updated_by_id = caller.user_id
            self.session.flush()

            logger.info(
                "cheque_transitioned",
                extra={"from_status": current, "to_status": target_status.value},
            )

            if target_status is not ChequeStatus.CLEARED:
                return ChequeTransitionResult(cheque=cheque)

            payment, warnings = self._derive_payment(caller, cheque)
        return ChequeTransitionResult(cheque=cheque, payment=payment, warnings=warnings)

    def ensure_cheque_payment(
        self, caller: Caller, cheque_id: UUID
    ) -> ChequeTransitionResult:
        """
        Derive the payment of a CLEARED cheque if it does not exist yet.

        Safe to call any number of times.

        Raises:
            InvalidTransitionError: the cheque is not CLEARED.
        """
        cheque = get_cheque(self.session, self.access, caller, cheque_id)
        if cheque.status != ChequeStatus.CLEARED.value:
            raise InvalidTransitionError(
                cheque.id,
                cheque.status,
                ChequeStatus.CLEARED.value,
                message=(
                    f"cheque {cheque.id} is {cheque.status}; only CLEARED "
                    f"cheques produce a payment"
                ),
            )
        with LogContext.bind(cheque_id=cheque.id, lease_id=cheque.lease_id):
            payment, warnings = self._derive_payment(caller, cheque)
        return ChequeTransitionResult(cheque=cheque, payment=payment, warnings=warnings)

    def remove_cheque(self, caller: Caller, cheque_id: UUID) -> None:
        """Hard-delete a cheque.  Its payment survives, unlinked."""
        cheque = get_cheque(self.session, self.access, caller, cheque_id)

        payment = self.payment_for(cheque.id)
        if payment is not None:
            payment.cheque_id = None
        for replaced in self.session.scalars(
            select(Cheque).where(Cheque.replaced_by_cheque_id == cheque.id)
        ):
            replaced.replaced_by_cheque_id = None
        self.session.flush()

        self.session.delete(cheque)
        self.session.flush()
        logger.info(
            "cheque_removed",
            extra={
                "cheque_id": str(cheque_id),
                "unlinked_payment_id": str(payment.id) if payment else None,
            },
        )

    def payment_for(self, cheque_id: UUID) -> Payment | None:
        return self.session.scalars(
            select(Payment).where(Payment.cheque_id == cheque_id)
        ).first()

    def _derive_payment(
        self, caller: Caller, cheque: Cheque
    ) -> tuple[Payment | None, tuple[str, ...]]:
        existing = self.payment_for(cheque.id)
        if existing is not None:
            logger.info(
                "cheque_payment_exists",
                extra={"payment_id": str(existing.id)},
            )
            return existing, ()

        reference = self.reference_template.format(
            cheque_number=cheque.cheque_number,
            bank_name=cheque.bank_name,
        )
        try:
            with self.session.begin_nested():
                payment = self.reconciler.create_and_auto_match(
                    caller,
                    cheque.lease_id,
                    cheque.amount,
                    cheque.cleared_or_bounce_date or cheque.cheque_date,
                    method=self.payment_method,
                    reference=reference,
                    cheque_id=cheque.id,
                )
        except IntegrityError:
            existing = self.payment_for(cheque.id)
            if existing is not None:
                logger.info(
                    "cheque_payment_exists",
                    extra={"payment_id": str(existing.id)},
                )
                return existing, ()
            logger.warning("cheque_payment_failed", exc_info=True)
            return None, ("payment creation failed: integrity error",)
        except (RentKernelError, SQLAlchemyError) as exc:
            logger.warning("cheque_payment_failed", exc_info=True)
            code = exc.code if isinstance(exc, RentKernelError) else type(exc).__name__
            return None, (f"payment creation failed: {code}: {exc}",)

        logger.info(
            "cheque_payment_created",
            extra={
                "payment_id": str(payment.id),
                "amount": money_text(payment.amount),
            },
        )
        return payment, ()
