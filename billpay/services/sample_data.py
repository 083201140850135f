"""
Sample payments for local runs.

Seeds one bill and one transfer into an empty store when
SEED_SAMPLE_DATA is enabled.
"""

from datetime import timedelta
from decimal import Decimal

from loguru import logger

from billpay.schemas.payment import BillCreate, TransferCreate
from billpay.services.payment_controller import PaymentController
from billpay.services.payment_store import PaymentStore
from billpay.utils.datetime_utils import utc_now


async def seed_sample_payments(store: PaymentStore, controller: PaymentController) -> list[str]:
    """
    Add the sample bill and transfer if the store is empty.

    Returns:
        Ids of the created payments (empty if the store had data)
    """
    if await store.count():
        logger.debug("Store not empty, sample payments not seeded")
        return []

    now = utc_now()
    bill_id = await controller.add_bill(
        BillCreate(
            barcode="03399.66290 60000.001014 41000.063305 8 84410000010000",
            amount=Decimal("150.00"),
            due_date=now + timedelta(days=7),
            beneficiary="Energia Elétrica SP",
            description="Conta de luz",
        )
    )
    transfer_id = await controller.add_transfer(
        TransferCreate(
            destination_key="exemplo@email.com",
            amount=Decimal("500.00"),
            recipient_name="João Silva",
            scheduled_date=now + timedelta(days=2),
            description="Pagamento de aluguel",
        )
    )

    logger.info(f"Seeded sample payments: {bill_id}, {transfer_id}")
    return [bill_id, transfer_id]
