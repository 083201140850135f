"""
Payment schemas.

Input validation for new bills and transfers, and the JSON shape used by
the operator surfaces. Output picks the schema from ``kind``.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from billpay.models.enums import PaymentKind, PaymentStatus
from billpay.models.payment import PaymentRecord
from billpay.utils.datetime_utils import ensure_aware


class BillCreate(BaseModel):
    """New barcode bill."""

    barcode: str = Field(..., min_length=1, max_length=128)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    due_date: datetime
    beneficiary: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)

    @field_validator("barcode", "beneficiary")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class TransferCreate(BaseModel):
    """New instant transfer."""

    destination_key: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    recipient_name: str | None = Field(default=None, max_length=255)
    scheduled_date: datetime | None = None
    description: str | None = Field(default=None, max_length=500)

    @field_validator("destination_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class _PaymentOutBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    description: str | None
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class BillOut(_PaymentOutBase):
    kind: Literal["bill"]
    barcode: str | None
    due_date: datetime | None
    beneficiary: str | None


class TransferOut(_PaymentOutBase):
    kind: Literal["transfer"]
    destination_key: str | None
    recipient_name: str | None
    scheduled_date: datetime | None


_OUT_BY_KIND: dict[PaymentKind, type[_PaymentOutBase]] = {
    PaymentKind.BILL: BillOut,
    PaymentKind.TRANSFER: TransferOut,
}


def dump_payment(record: PaymentRecord) -> dict:
    """Serialize a stored record to a JSON-ready dict."""
    schema = _OUT_BY_KIND[record.payment_kind]
    return schema.model_validate(record).model_dump(mode="json")


def dump_payments(records: list[PaymentRecord]) -> list[dict]:
    """Serialize many records, order kept."""
    return [dump_payment(record) for record in records]
