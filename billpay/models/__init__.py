"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from billpay.models.base import Base
from billpay.models.enums import (
    ALLOWED_TRANSITIONS,
    SELECTABLE_STATUSES,
    PaymentKind,
    PaymentStatus,
    can_transition,
)
from billpay.models.payment import Bill, Payment, PaymentRecord, Transfer

__all__ = [
    "ALLOWED_TRANSITIONS",
    "SELECTABLE_STATUSES",
    "Base",
    "Bill",
    "Payment",
    "PaymentKind",
    "PaymentRecord",
    "PaymentStatus",
    "Transfer",
    "can_transition",
]
