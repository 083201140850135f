"""
Dry-run settlement client.

Accepts every payment without contacting a provider. Used for local
runs and demos (SETTLEMENT_PROVIDER=dry_run).
"""

from uuid import uuid4

from loguru import logger

from billpay.models.payment import Bill, Transfer
from billpay.services.settlement.base import (
    ConnectionResult,
    SettlementClient,
    SettlementResult,
)


class DryRunSettlementClient(SettlementClient):
    """Settlement client that always succeeds."""

    def __init__(self) -> None:
        self._connected = False

    @property
    def name(self) -> str:
        return "dry_run"

    async def connect(self) -> ConnectionResult:
        self._connected = True
        logger.info("Dry-run settlement client connected")
        return ConnectionResult(connected=True)

    async def pay_bill(self, bill: Bill) -> SettlementResult:
        return self._settle(bill.id)

    async def pay_transfer(self, transfer: Transfer) -> SettlementResult:
        return self._settle(transfer.id)

    async def disconnect(self) -> None:
        self._connected = False
        logger.info("Dry-run settlement client disconnected")

    def _settle(self, payment_id: str) -> SettlementResult:
        if not self._connected:
            return SettlementResult(success=False, error="Not connected")
        transaction_id = f"dry-{uuid4().hex[:12]}"
        logger.info(f"[dry-run] Settled payment {payment_id} as {transaction_id}")
        return SettlementResult(success=True, transaction_id=transaction_id)
