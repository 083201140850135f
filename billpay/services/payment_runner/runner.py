"""
Payment Runner - Runner Module.

Module: runner.py
Runs one payment through the status lifecycle:
PENDING/SCHEDULED/FAILED -> PROCESSING -> SUCCESS | FAILED,
re-entering PROCESSING before every retry.

Settlement failures end as FAILED and are never raised. Attempts for the
same payment id are serialized; different ids may run concurrently.
"""

import asyncio
from collections.abc import Iterable
from weakref import WeakValueDictionary

from loguru import logger

from billpay.models.enums import PaymentKind, PaymentStatus, can_transition
from billpay.models.payment import PaymentRecord
from billpay.services.payment_runner.retry_policy import RetryPolicy
from billpay.services.payment_store import PaymentStore
from billpay.services.settlement.base import SettlementClient, SettlementResult


class PaymentRunner:
    """Status state machine around a single settlement call."""

    def __init__(
        self,
        store: PaymentStore,
        client: SettlementClient,
        retry_policy: RetryPolicy,
    ) -> None:
        """
        Initialize runner.

        Args:
            store: Payment store
            client: Connected settlement client
            retry_policy: Bounded retry policy
        """
        self._store = store
        self._client = client
        self._retry_policy = retry_policy
        # Entries disappear once no coroutine holds or waits on the lock
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def _lock_for(self, payment_id: str) -> asyncio.Lock:
        lock = self._locks.get(payment_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[payment_id] = lock
        return lock

    async def run(self, record: PaymentRecord) -> PaymentStatus | None:
        """
        Settle one payment with bounded retry.

        The record is re-read under the per-payment lock, so a stale
        snapshot never overrides a status written in the meantime. Entering
        PROCESSING is conditional on the status just read, so a cancel that
        lands between the read and the write wins and nothing is settled.

        Args:
            record: Payment to settle

        Returns:
            Final status, or None if the payment no longer exists
        """
        async with self._lock_for(record.id):
            current = await self._store.get(record.id)
            if current is None:
                logger.warning(f"Payment {record.id} disappeared before processing")
                return None

            if not can_transition(current.status, PaymentStatus.PROCESSING):
                logger.warning(
                    f"Skipping payment {current.id}: status {current.status.value} "
                    f"cannot be processed"
                )
                return current.status

            if not await self._store.transition_status(
                current.id, [current.status], PaymentStatus.PROCESSING
            ):
                return await self._lost_race(current.id)

            return await self._run_attempts(current)

    async def _lost_race(self, payment_id: str) -> PaymentStatus | None:
        """Status changed between the read and the write, e.g. a cancel."""
        latest = await self._store.get(payment_id)
        if latest is None:
            logger.warning(f"Payment {payment_id} disappeared before processing")
            return None
        logger.warning(
            f"Payment {payment_id} moved to {latest.status.value} before "
            f"processing started; skipped"
        )
        return latest.status

    async def _run_attempts(self, record: PaymentRecord) -> PaymentStatus:
        attempts = 0
        max_attempts = self._retry_policy.max_attempts

        while True:
            if attempts:
                await self._store.transition_status(
                    record.id, [PaymentStatus.PROCESSING], PaymentStatus.PROCESSING
                )
            result = await self._attempt(record, attempts + 1)

            if result.success:
                await self._finish(record.id, PaymentStatus.SUCCESS)
                logger.info(
                    f"Payment {record.id} completed successfully on attempt "
                    f"{attempts + 1}/{max_attempts}. "
                    f"Transaction ID: {result.transaction_id}"
                )
                return PaymentStatus.SUCCESS

            attempts += 1
            logger.error(
                f"Payment attempt {attempts}/{max_attempts} failed for "
                f"{record.id}: {result.error}"
            )

            if not self._retry_policy.should_retry(attempts):
                await self._finish(record.id, PaymentStatus.FAILED)
                logger.error(f"Payment {record.id} failed after {attempts} attempts")
                return PaymentStatus.FAILED

            delay = self._retry_policy.delay_before_next_attempt()
            logger.info(f"Retrying payment {record.id} in {delay:.3f}s")
            await asyncio.sleep(delay)

    async def _finish(self, payment_id: str, status: PaymentStatus) -> None:
        if not await self._store.transition_status(
            payment_id, [PaymentStatus.PROCESSING], status
        ):
            logger.warning(
                f"Payment {payment_id} left processing during settlement; "
                f"{status.value} not recorded"
            )

    async def _attempt(self, record: PaymentRecord, attempt: int) -> SettlementResult:
        """Dispatch on the payment kind; raised errors count as failures."""
        logger.debug(f"Settlement attempt {attempt} for {record.id} ({record.kind})")
        try:
            if record.payment_kind is PaymentKind.BILL:
                return await self._client.pay_bill(record)
            return await self._client.pay_transfer(record)
        except Exception as e:
            logger.exception(f"Settlement client raised for {record.id}: {e}")
            return SettlementResult(success=False, error=str(e) or e.__class__.__name__)

    async def recover_interrupted(self, records: Iterable[PaymentRecord]) -> int:
        """
        Move records stuck in PROCESSING to FAILED.

        Meant for startup: a PROCESSING record with no attempt running
        was interrupted by a crash and may or may not have been settled,
        so it is left for manual re-trigger instead of paid again.

        Returns:
            Number of records moved to FAILED
        """
        recovered = 0
        for record in records:
            async with self._lock_for(record.id):
                moved = await self._store.transition_status(
                    record.id, [PaymentStatus.PROCESSING], PaymentStatus.FAILED
                )
            if moved:
                recovered += 1
                logger.warning(
                    f"Payment {record.id} was left in processing by an "
                    f"interrupted run; marked as failed for manual review"
                )
        return recovered
