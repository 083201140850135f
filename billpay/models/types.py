"""
Standard type definitions for database models.

Provides consistent types for monetary and timestamp fields across all
models.
"""

from datetime import UTC, datetime

from sqlalchemy import DECIMAL, DateTime
from sqlalchemy.types import TypeDecorator

# Standard money type for bill and transfer amounts
# Precision: 18 digits total, 2 after decimal point
# Range: up to 9,999,999,999,999,999.99
MoneyType = DECIMAL(18, 2)


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored as UTC and always returned timezone-aware.

    SQLite keeps no offset, so values are converted to UTC before they
    are written. Naive input is taken to be UTC already.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
