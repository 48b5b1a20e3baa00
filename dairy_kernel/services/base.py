"""
BaseService -- abstract base for kernel write services.

Responsibility:
    Common constructor and session-handling contract.  Services receive a
    SQLAlchemy ``Session`` and persist with ``session.flush()`` -- never
    ``session.commit()``.  The caller (``session_scope()`` or a test
    fixture) owns commit and rollback.

Architecture position:
    Kernel > Services -- imperative shell over the ORM models.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Generic, Iterator, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dairy_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()`` on the outer transaction.
        - ``_savepoint()`` confines a failed flush to a SAVEPOINT so a
          constraint violation can be turned into a domain error without
          discarding the caller's other work.
    """

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _savepoint(self) -> Iterator[None]:
        """
        Run a flush inside a nested transaction.

        IntegrityError propagates after the savepoint is rolled back.
        """
        savepoint = self.session.begin_nested()
        try:
            yield
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            raise
        else:
            savepoint.commit()
