"""
Due-payment selector.

Decides which payments are due on a given calendar day:
- Bill: status PENDING and due_date inside the day
- Transfer: status SCHEDULED and scheduled_date set and inside the day

The day is [start_of_day, start_of_day + 1 day) in the configured
timezone. Result order follows the input order (store insertion order).
"""

from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo
from typing import TYPE_CHECKING

from loguru import logger

from billpay.models.enums import PaymentKind, PaymentStatus
from billpay.models.payment import PaymentRecord
from billpay.utils.datetime_utils import day_window, ensure_aware, utc_now

if TYPE_CHECKING:
    from billpay.services.payment_store import PaymentStore


# Status each kind must be in to be selected
_ELIGIBLE_STATUS = {
    PaymentKind.BILL: PaymentStatus.PENDING,
    PaymentKind.TRANSFER: PaymentStatus.SCHEDULED,
}


def is_due(record: PaymentRecord, window_start: datetime, window_end: datetime) -> bool:
    """Check a single record against the half-open day window."""
    if record.status != _ELIGIBLE_STATUS[record.payment_kind]:
        return False

    when = record.settlement_date
    if when is None:
        return False

    return window_start <= ensure_aware(when) < window_end


def select_due(
    records: Iterable[PaymentRecord], reference: datetime, tz: tzinfo = UTC
) -> list[PaymentRecord]:
    """
    Filter records due on the calendar day of reference.

    Args:
        records: Candidate records
        reference: Any instant in the target day
        tz: Timezone defining the calendar day

    Returns:
        Due records, input order preserved
    """
    window_start, window_end = day_window(reference, tz)
    return [record for record in records if is_due(record, window_start, window_end)]


class DuePaymentSelector:
    """Computes the set of payments due today from the store."""

    def __init__(self, tz: tzinfo = UTC) -> None:
        self.tz = tz

    async def due_today(
        self, store: "PaymentStore", reference: datetime | None = None
    ) -> list[PaymentRecord]:
        """
        Payments due on the day of reference (now if omitted).

        Only PENDING/SCHEDULED records are loaded; the day window is
        applied in Python so naive and aware timestamps compare alike.
        """
        reference = reference or utc_now()
        due = select_due(await store.pending(), reference, self.tz)
        logger.info(f"Found {len(due)} payments due today")
        return due
