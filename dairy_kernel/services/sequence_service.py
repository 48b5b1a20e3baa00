"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing integers per named sequence.  Invoice
    numbering uses one sequence per calendar day (``invoice:YYYYMMDD``) so
    that the four-digit disambiguator restarts every day and never repeats
    within it, even across processes sharing the database.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of truth for
      the next value.  Never MAX(...)+1 over the bills table.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError on a concurrent first use of a sequence name, handled by
      a savepoint rollback and re-read.
    - InvoiceNumberExhaustedError once a day's invoice sequence passes 9999.
"""

from datetime import date

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from dairy_kernel.db.base import Base
from dairy_kernel.exceptions import InvoiceNumberExhaustedError
from dairy_kernel.logging_config import get_logger

logger = get_logger("services.sequence")

INVOICE_SEQUENCE_MAX = 9999


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is a named sequence with its current value.  Row-level locking
    keeps it monotonic under concurrency.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session_scope() as session:
            seq = SequenceService(session).next_value("invoice:20240131")
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock (or create) the counter row, increment it, return the new value.

        Returns:
            An integer > 0, strictly greater than any value previously
            returned for this name.
        """
        if not sequence_name:
            raise ValueError("sequence_name is required")

        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use; another session may be creating it at the same time
            savepoint = self._session.begin_nested()
            try:
                self._session.add(SequenceCounter(name=sequence_name, current_value=1))
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def reset(self, sequence_name: str, value: int = 0) -> None:
        """
        Reset a sequence to a specific value.

        WARNING: only for tests and data repair.
        """
        counter = self._locked_counter(sequence_name)
        if counter is None:
            self._session.add(SequenceCounter(name=sequence_name, current_value=value))
        else:
            counter.current_value = value
        self._session.flush()


def invoice_sequence_name(day: date) -> str:
    return f"invoice:{day:%Y%m%d}"


class SequenceServiceGenerator:
    """
    Invoice disambiguator backed by the database counter for the day.

    Callable as ``generator(generated_on) -> int`` so it plugs straight into
    ``build_invoice``.  The value is consumed only if the caller's
    transaction commits.
    """

    def __init__(self, session: Session):
        self._sequences = SequenceService(session)

    def __call__(self, generated_on: date) -> int:
        value = self._sequences.next_value(invoice_sequence_name(generated_on))
        if value > INVOICE_SEQUENCE_MAX:
            raise InvoiceNumberExhaustedError(generated_on, value)
        return value
