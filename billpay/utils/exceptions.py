"""
Exception types.

Settlement failures are never raised: they end as a FAILED status.
Everything here is a lookup, lifecycle or startup problem that the
immediate caller has to handle.
"""


class BillPayError(Exception):
    """Base class for all billpay errors."""


class SettlementConnectionError(BillPayError):
    """Raised when the settlement provider session cannot be established."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or "Unknown error"
        super().__init__(f"Failed to connect to settlement provider: {self.reason}")


class PaymentNotFoundError(BillPayError):
    """Raised when a payment id does not exist in the store."""

    def __init__(self, payment_id: str) -> None:
        self.payment_id = payment_id
        super().__init__(f"Payment not found: {payment_id}")


class InvalidStatusTransitionError(BillPayError):
    """Raised when an operator action would break the status lifecycle."""

    def __init__(self, payment_id: str, current: str, target: str) -> None:
        self.payment_id = payment_id
        self.current = current
        self.target = target
        super().__init__(
            f"Payment {payment_id} cannot move from {current} to {target}"
        )


class SchedulerStateError(BillPayError):
    """Raised when a scheduler operation is not valid in its current state."""
