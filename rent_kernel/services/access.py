"""
Access collaborator -- who may see which properties.

The kernel treats access as an opaque capability check.  It only ever asks
two questions (can this caller touch this property, and which properties can
this caller see) and branches on one fact about the caller: whether they act
in an owner scope or as a scoped delegate.

Inaccessible records are reported as not-found by the services, never as
forbidden.
"""

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from rent_kernel.domain.dtos import Caller
from rent_kernel.models.property import Property


@runtime_checkable
class AccessPolicy(Protocol):
    """The two questions the kernel asks about a caller."""

    def accessible_property_ids(self, caller: Caller) -> list[UUID]: ...

    def can_access_property(self, caller: Caller, property_id: UUID) -> bool: ...


class OwnerScopeAccessPolicy:
    """
    Default policy backed by ``properties.owner_id``.

    Owner-scope callers see every property they own.  Delegates (property
    managers) see only the non-archived properties listed for them in
    ``delegations``; a delegate with no entry sees nothing.
    """

    def __init__(
        self,
        session: Session,
        delegations: Mapping[UUID, Iterable[UUID]] | None = None,
    ):
        self.session = session
        self._delegations = {
            user_id: frozenset(property_ids)
            for user_id, property_ids in (delegations or {}).items()
        }

    def accessible_property_ids(self, caller: Caller) -> list[UUID]:
        if caller.is_owner_scope:
            stmt = select(Property.id).where(Property.owner_id == caller.user_id)
        else:
            delegated = self._delegations.get(caller.user_id, frozenset())
            if not delegated:
                return []
            stmt = select(Property.id).where(
                Property.id.in_(delegated),
                Property.archived_at.is_(None),
            )
        return list(self.session.scalars(stmt))

    def can_access_property(self, caller: Caller, property_id: UUID) -> bool:
        prop = self.session.get(Property, property_id)
        if prop is None:
            return False
        if caller.is_owner_scope:
            return prop.owner_id == caller.user_id
        delegated = self._delegations.get(caller.user_id, frozenset())
        return prop.id in delegated and prop.archived_at is None

    def grant(self, manager_id: UUID, property_id: UUID) -> None:
        """Add one delegated property for a manager."""
        current = self._delegations.get(manager_id, frozenset())
        self._delegations[manager_id] = current | {property_id}
