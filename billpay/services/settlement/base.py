"""
Settlement client interface.

Every settlement provider wraps one authenticated session and executes
one bill payment or one transfer per call. Implementations report
failures through the returned result instead of raising.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from billpay.models.payment import Bill, Transfer
from billpay.utils.datetime_utils import utc_now


@dataclass
class ProviderCredentials:
    """Opaque credentials handed to the provider client."""

    username: str
    password: str
    cert_path: str | None = None
    cert_password: str | None = None


@dataclass
class ConnectionResult:
    """Outcome of connect()."""

    connected: bool
    error: str | None = None
    checked_at: datetime = field(default_factory=utc_now)


@dataclass
class SettlementResult:
    """Outcome of a single settlement call."""

    success: bool
    transaction_id: str | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=utc_now)


class SettlementClient(ABC):
    """Abstract base class for settlement providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier for logs."""
        ...

    @abstractmethod
    async def connect(self) -> ConnectionResult:
        """Establish a session. Must be called once before any payment call."""
        ...

    @abstractmethod
    async def pay_bill(self, bill: Bill) -> SettlementResult:
        """Pay a barcode bill."""
        ...

    @abstractmethod
    async def pay_transfer(self, transfer: Transfer) -> SettlementResult:
        """Execute an instant transfer."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the session. Safe to call more than once."""
        ...
