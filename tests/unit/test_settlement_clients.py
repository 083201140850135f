"""
Tests for settlement clients.

The HTTP client runs against a fake provider served by
aiohttp.test_utils.TestServer.
"""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from billpay.config.settings import Settings
from billpay.services.settlement import (
    DryRunSettlementClient,
    HttpSettlementClient,
    ProviderCredentials,
    build_settlement_client,
)

CREDENTIALS = ProviderCredentials(username="user", password="pass")


def fake_provider(calls: list, bill_reply: dict | None = None, bill_status: int = 200):
    """Provider stub recording (path, authorization, body) per payment call."""

    async def auth(request: web.Request) -> web.Response:
        body = await request.json()
        if (body.get("username"), body.get("password")) != ("user", "pass"):
            return web.json_response({"error": "invalid credentials"}, status=401)
        return web.json_response({"token": "token-123"})

    async def pay_bill(request: web.Request) -> web.Response:
        calls.append((request.path, request.headers.get("Authorization"), await request.json()))
        reply = bill_reply or {"success": True, "transactionId": "tx1"}
        return web.json_response(reply, status=bill_status)

    async def transfer(request: web.Request) -> web.Response:
        calls.append((request.path, request.headers.get("Authorization"), await request.json()))
        return web.json_response({"success": True, "transactionId": "tx2"})

    app = web.Application()
    app.router.add_post("/api/auth", auth)
    app.router.add_post("/api/bills/pay", pay_bill)
    app.router.add_post("/api/transfers", transfer)
    return app


async def start_provider(app: web.Application) -> TestServer:
    server = TestServer(app)
    await server.start_server()
    return server


class TestHttpSettlementClient:
    """HttpSettlementClient against the fake provider."""

    @pytest.mark.asyncio
    async def test_connect_and_pay_bill(self, make_bill):
        calls = []
        server = await start_provider(fake_provider(calls))
        client = HttpSettlementClient(CREDENTIALS, base_url=str(server.make_url("/")))
        try:
            connection = await client.connect()
            result = await client.pay_bill(make_bill())
        finally:
            await client.disconnect()
            await server.close()

        assert connection.connected is True
        assert result.success is True
        assert result.transaction_id == "tx1"
        path, authorization, body = calls[0]
        assert path == "/api/bills/pay"
        assert authorization == "Bearer token-123"
        assert body["amount"] == "150.00"
        assert body["barcode"].startswith("03399")

    @pytest.mark.asyncio
    async def test_pay_transfer_payload(self, make_transfer):
        calls = []
        server = await start_provider(fake_provider(calls))
        client = HttpSettlementClient(CREDENTIALS, base_url=str(server.make_url("/")))
        try:
            await client.connect()
            result = await client.pay_transfer(make_transfer())
        finally:
            await client.disconnect()
            await server.close()

        assert result.success is True
        assert result.transaction_id == "tx2"
        _, _, body = calls[0]
        assert body == {
            "destinationKey": "someone@example.com",
            "amount": "500.00",
            "description": "Rent",
            "recipientName": "Someone",
        }

    @pytest.mark.asyncio
    async def test_wrong_credentials_not_connected(self):
        server = await start_provider(fake_provider([]))
        client = HttpSettlementClient(
            ProviderCredentials(username="user", password="wrong"),
            base_url=str(server.make_url("/")),
        )
        try:
            connection = await client.connect()
        finally:
            await client.disconnect()
            await server.close()

        assert connection.connected is False
        assert connection.error == "HTTP 401"

    @pytest.mark.asyncio
    async def test_unreachable_provider_not_connected(self):
        client = HttpSettlementClient(CREDENTIALS, base_url="http://127.0.0.1:1", timeout_seconds=2)
        try:
            connection = await client.connect()
        finally:
            await client.disconnect()

        assert connection.connected is False
        assert connection.error

    @pytest.mark.asyncio
    async def test_pay_without_connect_fails(self, make_bill):
        client = HttpSettlementClient(CREDENTIALS, base_url="http://127.0.0.1:1")

        result = await client.pay_bill(make_bill())

        assert result.success is False
        assert result.error == "Not authenticated with provider"

    @pytest.mark.asyncio
    async def test_provider_declines_payment(self, make_bill):
        server = await start_provider(
            fake_provider([], bill_reply={"success": False, "error": "insufficient funds"})
        )
        client = HttpSettlementClient(CREDENTIALS, base_url=str(server.make_url("/")))
        try:
            await client.connect()
            result = await client.pay_bill(make_bill())
        finally:
            await client.disconnect()
            await server.close()

        assert result.success is False
        assert result.error == "insufficient funds"

    @pytest.mark.asyncio
    async def test_provider_server_error(self, make_bill):
        server = await start_provider(fake_provider([], bill_status=500))
        client = HttpSettlementClient(CREDENTIALS, base_url=str(server.make_url("/")))
        try:
            await client.connect()
            result = await client.pay_bill(make_bill())
        finally:
            await client.disconnect()
            await server.close()

        assert result.success is False
        assert result.error == "HTTP 500"

    @pytest.mark.asyncio
    async def test_disconnect_idempotent(self):
        client = HttpSettlementClient(CREDENTIALS, base_url="http://127.0.0.1:1")

        await client.disconnect()
        await client.disconnect()

        assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_pays_records_loaded_from_store(self, store, make_bill, make_transfer):
        await store.add(make_bill())
        await store.add(make_transfer())
        calls = []
        server = await start_provider(fake_provider(calls))
        client = HttpSettlementClient(CREDENTIALS, base_url=str(server.make_url("/")))
        try:
            await client.connect()
            bill_result = await client.pay_bill(await store.get("bill-1"))
            transfer_result = await client.pay_transfer(await store.get("transfer-1"))
        finally:
            await client.disconnect()
            await server.close()

        assert bill_result.success is True
        assert transfer_result.success is True
        assert calls[0][2]["barcode"].startswith("03399")
        assert calls[1][2]["destinationKey"] == "someone@example.com"


class TestDryRunSettlementClient:
    """DryRunSettlementClient."""

    @pytest.mark.asyncio
    async def test_settles_after_connect(self, make_bill, make_transfer):
        client = DryRunSettlementClient()
        await client.connect()

        bill_result = await client.pay_bill(make_bill())
        transfer_result = await client.pay_transfer(make_transfer())

        assert bill_result.success and transfer_result.success
        assert bill_result.transaction_id.startswith("dry-")

    @pytest.mark.asyncio
    async def test_fails_when_not_connected(self, make_bill):
        client = DryRunSettlementClient()

        result = await client.pay_bill(make_bill())

        assert result.success is False


class TestBuildSettlementClient:
    """Client selection from settings."""

    def test_dry_run(self):
        config = Settings(_env_file=None, settlement_provider="dry_run")

        assert isinstance(build_settlement_client(config), DryRunSettlementClient)

    def test_http(self):
        config = Settings(
            _env_file=None,
            settlement_provider="http",
            provider_username="user",
            provider_base_url="https://provider.test",
        )

        client = build_settlement_client(config)

        assert isinstance(client, HttpSettlementClient)
        assert client.name == "http"
