"""
Access-scoped record lookups shared by the write-side services.

Every helper raises the entity's NotFoundError both when the row is missing
and when the caller's access policy does not cover its property.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from rent_kernel.domain.dtos import Caller
from rent_kernel.exceptions import (
    ChequeNotFoundError,
    LeaseNotFoundError,
    PaymentNotFoundError,
    PropertyNotFoundError,
)
from rent_kernel.models import Cheque, Lease, Payment, Property
from rent_kernel.services.access import AccessPolicy


def get_property(
    session: Session, access: AccessPolicy, caller: Caller, property_id: UUID
) -> Property:
    prop = session.get(Property, property_id)
    if prop is None or not access.can_access_property(caller, prop.id):
        raise PropertyNotFoundError(property_id)
    return prop


def get_lease(
    session: Session, access: AccessPolicy, caller: Caller, lease_id: UUID
) -> Lease:
    lease = session.get(Lease, lease_id)
    if lease is None or not access.can_access_property(caller, lease.property_id):
        raise LeaseNotFoundError(lease_id)
    return lease


def get_cheque(
    session: Session, access: AccessPolicy, caller: Caller, cheque_id: UUID
) -> Cheque:
    cheque = session.get(Cheque, cheque_id)
    if cheque is None or not access.can_access_property(caller, cheque.property_id):
        raise ChequeNotFoundError(cheque_id)
    return cheque


def get_payment(
    session: Session, access: AccessPolicy, caller: Caller, payment_id: UUID
) -> Payment:
    payment = session.get(Payment, payment_id)
    if payment is None or not access.can_access_property(
        caller, payment.property_id
    ):
        raise PaymentNotFoundError(payment_id)
    return payment


def stamp_owner_id(caller: Caller, prop: Property) -> UUID:
    """Owner recorded on new rows: the caller for owners, else the property's."""
    return caller.user_id if caller.is_owner_scope else prop.owner_id
