"""Enumerations for the payment domain model."""

from enum import Enum


class PaymentKind(str, Enum):
    """Discriminator for the payment variants."""

    BILL = "bill"
    TRANSFER = "transfer"


class PaymentStatus(str, Enum):
    """Lifecycle states for a payment."""

    PENDING = "pending"
    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Statuses eligible for due-date selection
SELECTABLE_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.SCHEDULED})

# FAILED -> PROCESSING is the manual re-trigger path
ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PROCESSING, PaymentStatus.CANCELLED}),
    PaymentStatus.SCHEDULED: frozenset({PaymentStatus.PROCESSING, PaymentStatus.CANCELLED}),
    PaymentStatus.PROCESSING: frozenset(
        {PaymentStatus.PROCESSING, PaymentStatus.SUCCESS, PaymentStatus.FAILED}
    ),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PROCESSING, PaymentStatus.CANCELLED}),
    PaymentStatus.SUCCESS: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
}


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    """Check whether current -> target is an edge of the lifecycle."""
    return target in ALLOWED_TRANSITIONS[current]
