"""Repositories (session-scoped database access)."""

from billpay.repositories.base import BaseRepository
from billpay.repositories.payment_repository import PaymentRepository

__all__ = ["BaseRepository", "PaymentRepository"]
