"""Pydantic schemas for operator input and output."""

from billpay.schemas.payment import (
    BillCreate,
    BillOut,
    TransferCreate,
    TransferOut,
    dump_payment,
    dump_payments,
)

__all__ = [
    "BillCreate",
    "BillOut",
    "TransferCreate",
    "TransferOut",
    "dump_payment",
    "dump_payments",
]
