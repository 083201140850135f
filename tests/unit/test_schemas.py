"""Tests for input schemas and JSON output."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from billpay.schemas.payment import BillCreate, TransferCreate, dump_payment, dump_payments


class TestBillCreate:
    """Bill input validation."""

    def test_valid_bill(self):
        data = BillCreate(
            barcode="  123  ",
            amount="150.00",
            due_date="2026-10-20T09:00:00Z",
            beneficiary="Energy Co",
        )

        assert data.barcode == "123"
        assert data.amount == Decimal("150.00")
        assert data.due_date == datetime(2026, 10, 20, 9, tzinfo=UTC)

    @pytest.mark.parametrize("amount", ["0", "-1", "1.001"])
    def test_bad_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            BillCreate(barcode="1", amount=amount, due_date="2026-10-20T09:00:00Z", beneficiary="x")

    def test_blank_barcode_rejected(self):
        with pytest.raises(ValidationError):
            BillCreate(barcode="   ", amount="1", due_date="2026-10-20T09:00:00Z", beneficiary="x")


class TestTransferCreate:
    """Transfer input validation."""

    def test_scheduled_date_optional(self):
        data = TransferCreate(destination_key="key", amount="500")

        assert data.scheduled_date is None
        assert data.recipient_name is None

    def test_blank_destination_rejected(self):
        with pytest.raises(ValidationError):
            TransferCreate(destination_key=" ", amount="500")


class TestDump:
    """Output shape per kind."""

    def test_bill_json(self, make_bill):
        data = dump_payment(make_bill(due_date=datetime(2026, 10, 20, 9, tzinfo=UTC)))

        assert data["kind"] == "bill"
        assert data["id"] == "bill-1"
        assert data["status"] == "pending"
        assert data["amount"] == "150.00"
        assert data["due_date"] == "2026-10-20T09:00:00Z"
        assert "destination_key" not in data

    def test_transfer_json(self, make_transfer):
        data = dump_payment(make_transfer(scheduled_date=None))

        assert data["kind"] == "transfer"
        assert data["scheduled_date"] is None
        assert data["destination_key"] == "someone@example.com"
        assert "barcode" not in data

    def test_dump_many_keeps_order(self, make_bill, make_transfer):
        records = [make_transfer("transfer-1"), make_bill("bill-1")]

        assert [item["id"] for item in dump_payments(records)] == ["transfer-1", "bill-1"]

    @pytest.mark.asyncio
    async def test_dump_records_read_from_store(self, store, make_bill, make_transfer):
        await store.add(make_bill(due_date=datetime(2026, 10, 20, 9, tzinfo=UTC)))
        await store.add(make_transfer())

        data = dump_payments(await store.all())

        assert data[0]["barcode"].startswith("03399")
        assert data[0]["due_date"] == "2026-10-20T09:00:00Z"
        assert data[1]["destination_key"] == "someone@example.com"
