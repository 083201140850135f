"""
Payment store.

Keyed storage of payment records shared by the scheduler, the runner
and the operator surfaces. Every call opens its own session and
transaction, so each mutation is atomic per record and callers get
detached snapshots.
"""

from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from billpay.models.enums import SELECTABLE_STATUSES, PaymentStatus
from billpay.models.payment import PaymentRecord
from billpay.repositories.payment_repository import PaymentRepository
from billpay.services.due_payment_selector import select_due


class PaymentStore:
    """Payment store backed by an async SQLAlchemy session factory."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with session factory."""
        self._session_maker = session_maker

    async def add(self, record: PaymentRecord) -> PaymentRecord:
        """
        Insert a new record keyed by its id.

        Args:
            record: Transient Bill or Transfer with id already assigned

        Returns:
            The stored record

        Raises:
            sqlalchemy.exc.IntegrityError: If the id is already taken
        """
        async with self._session_maker() as session:
            async with session.begin():
                await PaymentRepository(session).add(record)

        logger.info(f"Added new payment: {record.id}")
        return record

    async def get(self, payment_id: str) -> PaymentRecord | None:
        """Get record by id, or None if absent."""
        async with self._session_maker() as session:
            return await PaymentRepository(session).get_by_payment_id(payment_id)

    async def update_status(self, payment_id: str, status: PaymentStatus) -> bool:
        """
        Set status and refresh updated_at.

        No-op when the id is absent.

        Returns:
            True if the record existed and was updated
        """
        async with self._session_maker() as session:
            async with session.begin():
                updated = await PaymentRepository(session).set_status(payment_id, status)

        if updated:
            logger.info(f"Updated payment {payment_id} status to {status.value}")
        else:
            logger.debug(f"Status update skipped, payment {payment_id} not found")
        return updated

    async def transition_status(
        self,
        payment_id: str,
        expected: Iterable[PaymentStatus],
        status: PaymentStatus,
    ) -> bool:
        """
        Set status only if the current status is one of expected.

        Check and write happen in one transaction.

        Returns:
            True if the record was updated
        """
        allowed = set(expected)
        async with self._session_maker() as session:
            async with session.begin():
                repo = PaymentRepository(session)
                record = await repo.get_by_payment_id(payment_id)
                if record is None or record.status not in allowed:
                    return False
                await repo.set_status(payment_id, status)

        logger.info(f"Updated payment {payment_id} status to {status.value}")
        return True

    async def all(self) -> list[PaymentRecord]:
        """All records in insertion order."""
        async with self._session_maker() as session:
            return list(await PaymentRepository(session).list_all())

    async def count(self) -> int:
        """Number of stored records."""
        async with self._session_maker() as session:
            return await PaymentRepository(session).count()

    async def pending(self) -> list[PaymentRecord]:
        """Records still waiting for settlement (PENDING or SCHEDULED)."""
        async with self._session_maker() as session:
            pending = list(
                await PaymentRepository(session).list_by_statuses(SELECTABLE_STATUSES)
            )

        logger.info(f"Found {len(pending)} pending payments")
        return pending

    async def by_status(self, status: PaymentStatus) -> list[PaymentRecord]:
        """Records currently in status."""
        async with self._session_maker() as session:
            return list(await PaymentRepository(session).list_by_statuses([status]))

    async def due_today(
        self, reference: datetime, tz: tzinfo = UTC
    ) -> list[PaymentRecord]:
        """Records due on the calendar day of reference."""
        return select_due(await self.pending(), reference, tz)
