"""
BaseService -- abstract base for all rent kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service.  Services receive a SQLAlchemy ``Session``
    and persist through ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell around the pure domain rules.

Invariants enforced:
    - Transaction boundaries belong to the caller (``session_scope`` or a
      test fixture).  A service may open a SAVEPOINT with
      ``session.begin_nested()`` to make one of its own steps
      all-or-nothing, but never commits or rolls back the outer
      transaction.

Failure modes:
    - A subclass that calls ``session.commit()`` breaks the atomicity of
      multi-step operations such as lease update + schedule regeneration.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from rent_kernel.db.base import Base
from rent_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all rent kernel services.

    Contract:
        Accepts a ``Session`` from the caller and an optional ``Clock``.
        Every "today" the service needs comes from the clock.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
