"""
Tests for due-payment selection.

Covers:
- Bills due today in PENDING are selected, at any hour of the day
- Day boundaries are half-open
- Status rules per kind
- Transfers without scheduled_date are never selected
- Timezone of the calendar day
- Input order is preserved
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from billpay.models.enums import PaymentStatus
from billpay.services.due_payment_selector import DuePaymentSelector, select_due

REFERENCE = datetime(2026, 10, 19, 15, 30, tzinfo=UTC)
DAY_START = datetime(2026, 10, 19, tzinfo=UTC)


class TestBillSelection:
    """Bills: PENDING and due_date inside the day."""

    @pytest.mark.parametrize(
        "due_date",
        [
            DAY_START,
            DAY_START + timedelta(hours=9),
            DAY_START + timedelta(hours=23, minutes=59, seconds=59),
        ],
    )
    def test_pending_bill_due_today_selected_once(self, make_bill, due_date):
        bill = make_bill(due_date=due_date)

        due = select_due([bill], REFERENCE)

        assert due == [bill]

    def test_bill_due_tomorrow_midnight_not_selected(self, make_bill):
        bill = make_bill(due_date=DAY_START + timedelta(days=1))

        assert select_due([bill], REFERENCE) == []

    def test_bill_due_yesterday_not_selected(self, make_bill):
        bill = make_bill(due_date=DAY_START - timedelta(seconds=1))

        assert select_due([bill], REFERENCE) == []

    @pytest.mark.parametrize(
        "status",
        [
            PaymentStatus.SUCCESS,
            PaymentStatus.FAILED,
            PaymentStatus.PROCESSING,
            PaymentStatus.CANCELLED,
            PaymentStatus.SCHEDULED,
        ],
    )
    def test_bill_due_today_in_other_status_not_selected(self, make_bill, status):
        bill = make_bill(due_date=DAY_START + timedelta(hours=9), status=status)

        assert select_due([bill], REFERENCE) == []

    def test_naive_due_date_treated_as_utc(self, make_bill):
        bill = make_bill(due_date=datetime(2026, 10, 19, 8, 0))

        assert select_due([bill], REFERENCE) == [bill]


class TestTransferSelection:
    """Transfers: SCHEDULED and scheduled_date set and inside the day."""

    def test_scheduled_transfer_today_selected(self, make_transfer):
        transfer = make_transfer(scheduled_date=DAY_START + timedelta(hours=10))

        assert select_due([transfer], REFERENCE) == [transfer]

    @pytest.mark.parametrize("status", list(PaymentStatus))
    def test_transfer_without_date_never_selected(self, make_transfer, status):
        transfer = make_transfer(scheduled_date=None, status=status)

        assert select_due([transfer], REFERENCE) == []

    def test_pending_transfer_not_selected(self, make_transfer):
        transfer = make_transfer(
            scheduled_date=DAY_START + timedelta(hours=10),
            status=PaymentStatus.PENDING,
        )

        assert select_due([transfer], REFERENCE) == []


class TestCalendarDay:
    """Day window and ordering."""

    def test_day_follows_configured_timezone(self, make_bill):
        """01:00 UTC on the 20th is still the 19th in Sao Paulo (UTC-3)."""
        tz = ZoneInfo("America/Sao_Paulo")
        reference = datetime(2026, 10, 20, 1, 0, tzinfo=UTC)
        on_local_19th = make_bill("bill-a", due_date=datetime(2026, 10, 19, 15, tzinfo=UTC))
        on_local_20th = make_bill("bill-b", due_date=datetime(2026, 10, 20, 12, tzinfo=UTC))

        due = select_due([on_local_19th, on_local_20th], reference, tz)

        assert due == [on_local_19th]

    def test_input_order_preserved(self, make_bill, make_transfer):
        records = [
            make_transfer("transfer-1", scheduled_date=DAY_START + timedelta(hours=20)),
            make_bill("bill-1", due_date=DAY_START + timedelta(hours=1)),
            make_bill("bill-2", due_date=DAY_START + timedelta(hours=12)),
        ]

        due = select_due(records, REFERENCE)

        assert [record.id for record in due] == ["transfer-1", "bill-1", "bill-2"]


class TestDuePaymentSelector:
    """Store-backed selection."""

    @pytest.mark.asyncio
    async def test_due_today_reads_pending_records(self, make_bill):
        due_bill = make_bill("bill-1", due_date=DAY_START + timedelta(hours=9))
        later_bill = make_bill("bill-2", due_date=DAY_START + timedelta(days=3))
        store = AsyncMock()
        store.pending = AsyncMock(return_value=[due_bill, later_bill])

        due = await DuePaymentSelector(UTC).due_today(store, REFERENCE)

        assert due == [due_bill]
        store.pending.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_due_today_defaults_to_now(self, make_bill):
        bill = make_bill()
        store = AsyncMock()
        store.pending = AsyncMock(return_value=[bill])

        due = await DuePaymentSelector().due_today(store)

        assert due == [bill]

    @pytest.mark.asyncio
    async def test_due_today_on_stored_records(self, store, make_bill, make_transfer):
        await store.add(make_bill("bill-1", due_date=DAY_START + timedelta(hours=9)))
        await store.add(make_bill("bill-2", due_date=DAY_START + timedelta(days=3)))
        await store.add(make_transfer("transfer-1", scheduled_date=DAY_START + timedelta(hours=20)))
        await store.add(make_transfer("transfer-2", scheduled_date=None))

        due = await DuePaymentSelector(UTC).due_today(store, REFERENCE)

        assert [record.id for record in due] == ["bill-1", "transfer-1"]
