"""
Payment scheduler.

Owns the recurring cron job (APScheduler AsyncIOScheduler) that settles
the payments due today. On every tick, and once at startup, it asks the
due-payment selector for today's payments and runs the payment runner
over them one by one.

Lifecycle: STOPPED -> STARTING -> RUNNING -> STOPPING -> STOPPED.
"""

import asyncio
from datetime import UTC, datetime, tzinfo
from enum import Enum

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from billpay.config.constants import DEFAULT_PAYMENT_CHECK_CRON
from billpay.models.enums import PaymentStatus
from billpay.models.payment import PaymentRecord
from billpay.services.due_payment_selector import DuePaymentSelector
from billpay.services.payment_runner import PaymentRunner
from billpay.services.payment_store import PaymentStore
from billpay.services.settlement.base import SettlementClient
from billpay.utils.exceptions import (
    PaymentNotFoundError,
    SchedulerStateError,
    SettlementConnectionError,
)

PROCESS_JOB_ID = "process_due_payments"


class SchedulerState(str, Enum):
    """Lifecycle states of the scheduler."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class PaymentScheduler:
    """
    Recurring settlement of due payments.

    Passes never overlap: a tick that arrives while a pass is still
    running is skipped. Stopping is cooperative: attempts already in
    flight finish, but no further record of the current pass is started.
    """

    def __init__(
        self,
        store: PaymentStore,
        client: SettlementClient,
        runner: PaymentRunner,
        selector: DuePaymentSelector,
        cron_expression: str = DEFAULT_PAYMENT_CHECK_CRON,
        tz: tzinfo = UTC,
        recover_stale_processing: bool = True,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            store: Payment store
            client: Settlement client, connected by start()
            runner: Payment runner sharing the same client
            selector: Due-payment selector
            cron_expression: Crontab expression for the recurring pass
            tz: Timezone the cron expression is evaluated in
            recover_stale_processing: Fail PROCESSING leftovers on start
        """
        self._store = store
        self._client = client
        self._runner = runner
        self._selector = selector
        self._cron_expression = cron_expression
        self._tz = tz
        self._recover_stale_processing = recover_stale_processing

        self._state = SchedulerState.STOPPED
        self._cron: AsyncIOScheduler | None = None
        self._pass_lock = asyncio.Lock()
        self._pass_task: asyncio.Task | None = None
        self._trigger_runs: set[asyncio.Task] = set()
        self._stop_requested = False

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def cron_expression(self) -> str:
        return self._cron_expression

    @property
    def next_run_time(self) -> datetime | None:
        """Next cron tick, or None when not armed."""
        if self._cron is None:
            return None
        job = self._cron.get_job(PROCESS_JOB_ID)
        return job.next_run_time if job else None

    async def start(self, initial_pass: bool = True) -> None:
        """
        Connect, arm the cron job and run the first pass.

        Args:
            initial_pass: Run a processing pass right away so nothing
                waits for the first tick

        Raises:
            SchedulerStateError: If the scheduler is not stopped
            SettlementConnectionError: If the provider session cannot be
                established; the scheduler stays STOPPED
        """
        if self._state is not SchedulerState.STOPPED:
            raise SchedulerStateError(
                f"Cannot start scheduler in state {self._state.value}"
            )

        logger.info("Starting payment scheduler")
        self._state = SchedulerState.STARTING
        self._stop_requested = False

        try:
            connection = await self._client.connect()
        except Exception as e:
            self._state = SchedulerState.STOPPED
            logger.error(f"Failed to start payment scheduler: {e}")
            raise SettlementConnectionError(str(e)) from e

        if not connection.connected:
            self._state = SchedulerState.STOPPED
            logger.error(
                f"Failed to start payment scheduler: provider connection "
                f"refused ({connection.error})"
            )
            raise SettlementConnectionError(connection.error)

        if self._recover_stale_processing:
            await self._recover_interrupted_payments()

        if self._stop_requested:
            logger.warning("Scheduler stopped during startup, cron job not armed")
            return

        self._cron = AsyncIOScheduler(timezone=self._tz)
        self._cron.add_job(
            self._on_tick,
            CronTrigger.from_crontab(self._cron_expression, timezone=self._tz),
            id=PROCESS_JOB_ID,
            name="Process due payments",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._cron.start()
        logger.info(f"Payment scheduler started with pattern: {self._cron_expression}")

        if initial_pass:
            await self.process_due_payments()

        # stop() may have been called during the initial pass
        if self._state is SchedulerState.STARTING:
            self._state = SchedulerState.RUNNING
            logger.info(f"Payment scheduler running, next run at {self.next_run_time}")

    async def stop(self) -> None:
        """
        Disarm the cron job and disconnect the provider.

        Safe to call in any state and more than once. Does not cancel an
        attempt or a retry delay already in progress: the running pass
        and manual triggers are awaited before the provider session is
        closed.
        """
        if self._state in (SchedulerState.STOPPED, SchedulerState.STOPPING):
            logger.debug(f"Scheduler already {self._state.value}")
            return

        logger.info("Stopping payment scheduler")
        self._state = SchedulerState.STOPPING
        self._stop_requested = True

        if self._cron is not None:
            if self._cron.running:
                self._cron.shutdown(wait=False)
            self._cron = None

        try:
            await self._wait_for_in_flight()
            await self._client.disconnect()
        finally:
            self._state = SchedulerState.STOPPED
            logger.info("Payment scheduler stopped")

    async def _wait_for_in_flight(self) -> None:
        current = asyncio.current_task()
        runs = {run for run in self._trigger_runs if run is not current}
        # stop() called from inside the pass cannot wait for that pass
        wait_for_pass = self._pass_lock.locked() and self._pass_task is not current
        if not (runs or wait_for_pass):
            return

        logger.info("Waiting for in-flight payments before disconnecting")
        if wait_for_pass:
            async with self._pass_lock:
                pass
        if runs:
            await asyncio.wait(runs)

    async def _on_tick(self) -> None:
        """Cron job entry point."""
        if self._state is not SchedulerState.RUNNING:
            logger.debug(f"Tick ignored, scheduler is {self._state.value}")
            return
        await self.process_due_payments()

    async def process_due_payments(self) -> dict:
        """
        Run one processing pass.

        Selector or store errors abort only this pass. A record that
        fails, even with an unexpected error, does not stop the records
        after it.

        Returns:
            Dict with processed, successful, failed counts
        """
        stats = {"processed": 0, "successful": 0, "failed": 0}

        if self._pass_lock.locked():
            logger.warning("Previous payment pass still running, skipping this one")
            return stats

        async with self._pass_lock:
            self._pass_task = asyncio.current_task()
            try:
                return await self._run_pass(stats)
            finally:
                self._pass_task = None

    async def _run_pass(self, stats: dict) -> dict:
        logger.info("Processing scheduled payments")

        try:
            due = await self._selector.due_today(self._store)
        except Exception as e:
            logger.exception(f"Error selecting due payments, pass skipped: {e}")
            return stats

        if not due:
            logger.info("No payments due today")
            return stats

        for index, record in enumerate(due):
            if self._stop_requested:
                logger.warning(
                    f"Stop requested, leaving {len(due) - index} due "
                    f"payments for the next run"
                )
                break

            final_status = await self._run_safe(record)
            stats["processed"] += 1
            if final_status is PaymentStatus.SUCCESS:
                stats["successful"] += 1
            elif final_status is PaymentStatus.FAILED:
                stats["failed"] += 1

        logger.info(
            f"Finished processing scheduled payments: "
            f"{stats['successful']} successful, {stats['failed']} failed "
            f"out of {stats['processed']}"
        )

        return stats

    async def _run_safe(self, record: PaymentRecord) -> PaymentStatus | None:
        try:
            return await self._runner.run(record)
        except Exception as e:
            logger.exception(f"Error processing payment {record.id}: {e}")
            return PaymentStatus.FAILED

    async def _recover_interrupted_payments(self) -> None:
        try:
            stale = await self._store.by_status(PaymentStatus.PROCESSING)
            if stale:
                recovered = await self._runner.recover_interrupted(stale)
                logger.warning(f"Recovered {recovered} interrupted payments")
        except Exception as e:
            logger.exception(f"Failed to recover interrupted payments: {e}")

    async def trigger_payment(self, payment_id: str) -> PaymentStatus | None:
        """
        Settle one payment now, bypassing due-date selection.

        Args:
            payment_id: Payment id, any status

        Returns:
            Final status reported by the runner

        Raises:
            SchedulerStateError: If the scheduler is not running
            PaymentNotFoundError: If no payment has this id
        """
        if self._state is not SchedulerState.RUNNING:
            raise SchedulerStateError(
                f"Scheduler is {self._state.value}; manual triggers are not accepted"
            )

        record = await self._store.get(payment_id)
        if record is None:
            logger.error(f"Failed to trigger payment {payment_id}: not found")
            raise PaymentNotFoundError(payment_id)

        logger.info(f"Manually triggering payment {payment_id}")
        run = asyncio.create_task(self._runner.run(record))
        self._trigger_runs.add(run)
        run.add_done_callback(self._trigger_runs.discard)
        # A caller that goes away must not leave the record in PROCESSING
        return await asyncio.shield(run)

    async def get_status(self) -> list[PaymentRecord]:
        """Snapshot of all payments."""
        return await self._store.all()
