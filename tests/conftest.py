"""Pytest configuration and shared fixtures for all tests."""

import os

# Minimal environment so importing billpay.config never needs a .env
os.environ.setdefault("SETTLEMENT_PROVIDER", "dry_run")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_FILE", "")

from datetime import UTC, datetime, time
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from billpay.config.database import create_engine, create_session_maker, init_models
from billpay.models.enums import PaymentStatus
from billpay.models.payment import Bill, Transfer
from billpay.services.payment_runner import PaymentRunner, RetryPolicy
from billpay.services.payment_store import PaymentStore
from billpay.services.settlement.base import ConnectionResult, SettlementResult
from billpay.utils.datetime_utils import utc_now

# Sentinel for "today at noon UTC"
TODAY = object()


def today_at_noon() -> datetime:
    return datetime.combine(utc_now().date(), time(12), tzinfo=UTC)


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_engine("sqlite+aiosqlite://")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine):
    """PaymentStore over the in-memory database."""
    return PaymentStore(create_session_maker(engine))


@pytest.fixture
def mock_client():
    """
    Settlement client that connects and settles successfully.

    Tests override return_value / side_effect per call as needed.
    """
    client = AsyncMock()
    client.name = "mock"
    client.connect = AsyncMock(return_value=ConnectionResult(connected=True))
    client.pay_bill = AsyncMock(
        return_value=SettlementResult(success=True, transaction_id="tx1")
    )
    client.pay_transfer = AsyncMock(
        return_value=SettlementResult(success=True, transaction_id="tx2")
    )
    client.disconnect = AsyncMock()
    return client


@pytest.fixture
def retry_policy():
    """Three attempts, no delay."""
    return RetryPolicy(max_attempts=3, base_delay=0)


@pytest.fixture
def runner(store, mock_client, retry_policy):
    return PaymentRunner(store, mock_client, retry_policy)


@pytest.fixture
def make_bill():
    """
    Factory for transient bills.

    Defaults: PENDING, 150.00, due today at noon UTC.
    """

    def _make(
        payment_id: str = "bill-1",
        *,
        due_date=TODAY,
        status: PaymentStatus = PaymentStatus.PENDING,
        amount: str = "150.00",
    ) -> Bill:
        now = utc_now()
        return Bill(
            id=payment_id,
            amount=Decimal(amount),
            description="Electricity",
            status=status,
            barcode="03399.66290 60000.001014 41000.063305 8 84410000010000",
            due_date=today_at_noon() if due_date is TODAY else due_date,
            beneficiary="Energy Co",
            created_at=now,
            updated_at=now,
        )

    return _make


@pytest.fixture
def make_transfer():
    """
    Factory for transient transfers.

    Defaults: SCHEDULED, 500.00, scheduled today at noon UTC.
    """

    def _make(
        payment_id: str = "transfer-1",
        *,
        scheduled_date=TODAY,
        status: PaymentStatus = PaymentStatus.SCHEDULED,
        amount: str = "500.00",
    ) -> Transfer:
        now = utc_now()
        return Transfer(
            id=payment_id,
            amount=Decimal(amount),
            description="Rent",
            status=status,
            destination_key="someone@example.com",
            recipient_name="Someone",
            scheduled_date=today_at_noon() if scheduled_date is TODAY else scheduled_date,
            created_at=now,
            updated_at=now,
        )

    return _make
