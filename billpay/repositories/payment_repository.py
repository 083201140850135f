"""
Payment Repository.

Database operations for Payment models (bills and transfers).
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from billpay.models.enums import PaymentStatus
from billpay.models.payment import Payment
from billpay.repositories.base import BaseRepository
from billpay.utils.datetime_utils import utc_now


class PaymentRepository(BaseRepository[Payment]):
    """Repository for bills and transfers."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        super().__init__(Payment, session)

    async def get_by_payment_id(self, payment_id: str) -> Payment | None:
        """Get payment by public id."""
        return await self.get_by(id=payment_id)

    async def list_all(self) -> Sequence[Payment]:
        """All payments in insertion order."""
        result = await self.session.execute(
            select(Payment).order_by(Payment.seq)
        )
        return result.scalars().all()

    async def list_by_statuses(
        self, statuses: Iterable[PaymentStatus]
    ) -> Sequence[Payment]:
        """Payments whose status is one of statuses, in insertion order."""
        result = await self.session.execute(
            select(Payment)
            .where(Payment.status.in_(list(statuses)))
            .order_by(Payment.seq)
        )
        return result.scalars().all()

    async def set_status(self, payment_id: str, status: PaymentStatus) -> bool:
        """
        Set status and bump updated_at in one statement.

        Args:
            payment_id: Public payment id
            status: New status

        Returns:
            True if a row was updated
        """
        result = await self.session.execute(
            update(Payment)
            .where(Payment.id == payment_id)
            .values(status=status, updated_at=utc_now())
        )
        return result.rowcount > 0
