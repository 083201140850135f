"""
Payment controller.

Operator-facing facade used by the CLI and the HTTP API: listing,
adding, cancelling and manually triggering payments. Plain data access
plus validation; settlement itself always goes through the scheduler.
"""

from datetime import UTC, datetime, tzinfo
from uuid import uuid4

from loguru import logger

from billpay.config.constants import BILL_ID_PREFIX, TRANSFER_ID_PREFIX
from billpay.jobs.scheduler import PaymentScheduler
from billpay.models.enums import PaymentStatus, can_transition
from billpay.models.payment import Bill, PaymentRecord, Transfer
from billpay.schemas.payment import BillCreate, TransferCreate
from billpay.services.payment_store import PaymentStore
from billpay.utils.datetime_utils import utc_now
from billpay.utils.exceptions import (
    InvalidStatusTransitionError,
    PaymentNotFoundError,
    SchedulerStateError,
)

# Statuses an operator may cancel from
CANCELLABLE_STATUSES = frozenset(
    status
    for status in PaymentStatus
    if can_transition(status, PaymentStatus.CANCELLED)
)


def new_payment_id(prefix: str) -> str:
    """Unique id such as ``bill-3f9c0a1b2d4e``."""
    return f"{prefix}-{uuid4().hex[:12]}"


class PaymentController:
    """Operator operations on payments."""

    def __init__(
        self,
        store: PaymentStore,
        scheduler: PaymentScheduler | None = None,
        tz: tzinfo = UTC,
    ) -> None:
        """
        Initialize controller.

        Args:
            store: Payment store
            scheduler: Running scheduler, required only for triggers
            tz: Timezone for naive dates given by the operator
        """
        self._store = store
        self._scheduler = scheduler
        self._tz = tz

    def _localize(self, value: datetime | None) -> datetime | None:
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=self._tz)

    async def get_all_payments(self) -> list[PaymentRecord]:
        return await self._store.all()

    async def get_pending_payments(self) -> list[PaymentRecord]:
        return await self._store.pending()

    async def get_payment(self, payment_id: str) -> PaymentRecord:
        record = await self._store.get(payment_id)
        if record is None:
            raise PaymentNotFoundError(payment_id)
        return record

    async def add_bill(self, data: BillCreate) -> str:
        """
        Store a new bill in PENDING.

        Returns:
            Generated payment id
        """
        now = utc_now()
        bill = Bill(
            id=new_payment_id(BILL_ID_PREFIX),
            amount=data.amount,
            description=data.description,
            status=PaymentStatus.PENDING,
            barcode=data.barcode,
            due_date=self._localize(data.due_date),
            beneficiary=data.beneficiary,
            created_at=now,
            updated_at=now,
        )
        await self._store.add(bill)
        logger.info(f"Added new bill: {bill.id} ({bill.amount} to {bill.beneficiary})")
        return bill.id

    async def add_transfer(self, data: TransferCreate) -> str:
        """
        Store a new transfer in SCHEDULED.

        A transfer without scheduled_date is kept but never picked up by
        the scheduler; it can only be settled by a manual trigger.

        Returns:
            Generated payment id
        """
        now = utc_now()
        transfer = Transfer(
            id=new_payment_id(TRANSFER_ID_PREFIX),
            amount=data.amount,
            description=data.description,
            status=PaymentStatus.SCHEDULED,
            destination_key=data.destination_key,
            recipient_name=data.recipient_name,
            scheduled_date=self._localize(data.scheduled_date),
            created_at=now,
            updated_at=now,
        )
        await self._store.add(transfer)
        logger.info(f"Added new transfer: {transfer.id} ({transfer.amount})")
        return transfer.id

    async def cancel_payment(self, payment_id: str) -> None:
        """
        Cancel a payment that is not being or has not been settled.

        Raises:
            PaymentNotFoundError: If no payment has this id
            InvalidStatusTransitionError: If the status cannot be cancelled
        """
        cancelled = await self._store.transition_status(
            payment_id, CANCELLABLE_STATUSES, PaymentStatus.CANCELLED
        )
        if cancelled:
            logger.info(f"Cancelled payment: {payment_id}")
            return

        record = await self._store.get(payment_id)
        if record is None:
            raise PaymentNotFoundError(payment_id)
        raise InvalidStatusTransitionError(
            payment_id, record.status.value, PaymentStatus.CANCELLED.value
        )

    async def trigger_payment(self, payment_id: str) -> PaymentStatus | None:
        """Settle one payment now through the scheduler."""
        if self._scheduler is None:
            raise SchedulerStateError("No scheduler attached; manual triggers are not accepted")
        return await self._scheduler.trigger_payment(payment_id)

    async def get_payment_status(self) -> list[PaymentRecord]:
        if self._scheduler is None:
            return await self._store.all()
        return await self._scheduler.get_status()
