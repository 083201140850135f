"""
Payment models.

Bills and transfers share one table; the ``kind`` column is the
discriminator and SQLAlchemy returns the matching subclass on load.
Variant columns are nullable at the table level because the other
variant leaves them empty. Required fields are enforced by the input
schemas.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from billpay.models.base import Base
from billpay.models.enums import PaymentKind, PaymentStatus
from billpay.models.types import MoneyType, UTCDateTime
from billpay.utils.datetime_utils import utc_now


class Payment(Base):
    """
    Common part of every payment obligation.

    ``seq`` is a surrogate key that preserves insertion order; ``id`` is
    the public identifier assigned at creation.
    """

    __tablename__ = "payments"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    kind: Mapped[str] = mapped_column(String(20), nullable=False, comment="bill, transfer")

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), default=utc_now, nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __mapper_args__ = {
        "polymorphic_on": "kind",
        "with_polymorphic": "*",
    }

    @property
    def payment_kind(self) -> PaymentKind:
        """Discriminator as enum."""
        return PaymentKind(self.kind)

    @property
    def settlement_date(self) -> datetime | None:
        """Date that decides when the payment is due."""
        return None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<{self.__class__.__name__}("
            f"id={self.id}, "
            f"amount={self.amount}, "
            f"status={self.status.value if self.status else None}"
            f")>"
        )


class Bill(Payment):
    """Fixed-barcode payment obligation with a due date."""

    barcode: Mapped[str | None] = mapped_column(String(128), nullable=True)

    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime(timezone=True), nullable=True)

    beneficiary: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __mapper_args__ = {
        "polymorphic_identity": PaymentKind.BILL.value,
    }

    @property
    def settlement_date(self) -> datetime | None:
        return self.due_date


class Transfer(Payment):
    """Instant transfer to a destination key, optionally scheduled."""

    destination_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    recipient_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    scheduled_date: Mapped[datetime | None] = mapped_column(
        UTCDateTime(timezone=True), nullable=True
    )

    __mapper_args__ = {
        "polymorphic_identity": PaymentKind.TRANSFER.value,
    }

    @property
    def settlement_date(self) -> datetime | None:
        return self.scheduled_date


# Anything the store hands out
PaymentRecord = Bill | Transfer
