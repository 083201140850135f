"""
HTTP settlement client.

Talks to the provider's JSON API with aiohttp:
- POST /api/auth            -> {"token": "..."}
- POST /api/bills/pay       -> {"success": true, "transactionId": "..."}
- POST /api/transfers       -> {"success": true, "transactionId": "..."}

Payment calls carry the bearer token obtained by connect(). Transport
and protocol errors become failed results; the runner decides whether
to try again.
"""

import ssl
from typing import Any

import aiohttp
from loguru import logger

from billpay.config.constants import PROVIDER_USER_AGENT
from billpay.models.payment import Bill, Transfer
from billpay.services.settlement.base import (
    ConnectionResult,
    ProviderCredentials,
    SettlementClient,
    SettlementResult,
)

AUTH_PATH = "/api/auth"
BILL_PAYMENT_PATH = "/api/bills/pay"
TRANSFER_PATH = "/api/transfers"

# Errors that mean "this call failed", not "the program is broken"
_CALL_ERRORS = (aiohttp.ClientError, TimeoutError, ValueError, KeyError)


class ProviderError(Exception):
    """Provider answered, but not with a usable success response."""


class HttpSettlementClient(SettlementClient):
    """Settlement client for the provider's HTTP API."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        base_url: str,
        timeout_seconds: float = 30,
    ) -> None:
        """
        Initialize client.

        Args:
            credentials: Provider login and optional client certificate
            base_url: Provider API root
            timeout_seconds: Total timeout per HTTP call
        """
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None
        self._auth_token: str | None = None

    @property
    def name(self) -> str:
        return "http"

    @property
    def is_authenticated(self) -> bool:
        return self._auth_token is not None

    def _build_connector(self) -> aiohttp.TCPConnector | None:
        """Client certificate connector, if a certificate is configured."""
        if not self._credentials.cert_path:
            return None
        context = ssl.create_default_context()
        context.load_cert_chain(
            self._credentials.cert_path,
            password=self._credentials.cert_password,
        )
        return aiohttp.TCPConnector(ssl=context)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=self._build_connector(),
                headers={
                    "User-Agent": PROVIDER_USER_AGENT,
                    "Content-Type": "application/json",
                },
            )
        return self._session

    async def _post(
        self, path: str, payload: dict[str, Any], authenticated: bool = True
    ) -> dict[str, Any]:
        """POST JSON and return the decoded body."""
        session = await self._get_session()
        headers = {}
        if authenticated:
            headers["Authorization"] = f"Bearer {self._auth_token}"

        async with session.post(f"{self._base_url}{path}", json=payload, headers=headers) as response:
            if response.status != 200:
                raise ProviderError(f"HTTP {response.status}")
            data = await response.json()
            if not isinstance(data, dict):
                raise ProviderError("Unexpected response body")
            return data

    async def connect(self) -> ConnectionResult:
        """Authenticate and keep the bearer token for later calls."""
        logger.info("Attempting to connect to settlement provider")
        try:
            data = await self._post(
                AUTH_PATH,
                {
                    "username": self._credentials.username,
                    "password": self._credentials.password,
                },
                authenticated=False,
            )
            token = data.get("token")
            if not token:
                raise ProviderError("Authentication failed")
        except (ProviderError, *_CALL_ERRORS) as e:
            logger.error(f"Failed to connect to settlement provider: {e}")
            return ConnectionResult(connected=False, error=str(e) or e.__class__.__name__)

        self._auth_token = token
        logger.info("Successfully connected to settlement provider")
        return ConnectionResult(connected=True)

    async def pay_bill(self, bill: Bill) -> SettlementResult:
        logger.info(f"Attempting to pay bill: {bill.id}")
        return await self._settle(
            bill.id,
            BILL_PAYMENT_PATH,
            {
                "barcode": bill.barcode,
                "amount": str(bill.amount),
            },
        )

    async def pay_transfer(self, transfer: Transfer) -> SettlementResult:
        logger.info(f"Attempting transfer: {transfer.id}")
        return await self._settle(
            transfer.id,
            TRANSFER_PATH,
            {
                "destinationKey": transfer.destination_key,
                "amount": str(transfer.amount),
                "description": transfer.description,
                "recipientName": transfer.recipient_name,
            },
        )

    async def _settle(
        self, payment_id: str, path: str, payload: dict[str, Any]
    ) -> SettlementResult:
        """Run one payment call and translate the outcome."""
        if not self.is_authenticated:
            return SettlementResult(success=False, error="Not authenticated with provider")

        try:
            data = await self._post(path, payload)
            if not data.get("success"):
                raise ProviderError(data.get("error") or "Payment failed")
        except (ProviderError, *_CALL_ERRORS) as e:
            logger.error(f"Settlement call failed for {payment_id}: {e}")
            return SettlementResult(success=False, error=str(e) or e.__class__.__name__)

        return SettlementResult(success=True, transaction_id=data.get("transactionId"))

    async def disconnect(self) -> None:
        """Drop the token and close the HTTP session."""
        self._auth_token = None
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info("Disconnected from settlement provider")
