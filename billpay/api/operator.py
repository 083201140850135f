"""
Operator HTTP API.

Thin aiohttp layer over PaymentController:

    GET  /payments                    all payments
    GET  /payments/pending            PENDING and SCHEDULED payments
    GET  /payments/{payment_id}       one payment
    POST /payments/bills              add bill
    POST /payments/transfers          add transfer
    POST /payments/{payment_id}/cancel
    POST /payments/{payment_id}/trigger
    GET  /status                      scheduler state and all payments

Health probes from billpay.jobs.health are mounted on the same app.
"""

import asyncio
import json
from typing import Any

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from billpay.jobs.health import SCHEDULER_KEY, register_health_routes
from billpay.jobs.scheduler import PaymentScheduler
from billpay.schemas.payment import BillCreate, TransferCreate, dump_payment, dump_payments
from billpay.services.payment_controller import PaymentController
from billpay.utils.exceptions import (
    InvalidStatusTransitionError,
    PaymentNotFoundError,
    SchedulerStateError,
)

CONTROLLER_KEY = web.AppKey("controller", PaymentController)


def _error(status: int, error: str, **extra: Any) -> web.Response:
    return web.json_response({"error": error, **extra}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Map domain errors to HTTP status codes."""
    try:
        return await handler(request)
    except PaymentNotFoundError as e:
        return _error(404, "not_found", message=str(e))
    except InvalidStatusTransitionError as e:
        return _error(409, "invalid_transition", message=str(e))
    except SchedulerStateError as e:
        return _error(503, "scheduler_unavailable", message=str(e))
    except ValidationError as e:
        return _error(
            422,
            "validation_error",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        )


async def _read_json(request: web.Request) -> dict:
    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        raise web.HTTPBadRequest(text=f"Invalid JSON body: {e}") from e
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(text="JSON body must be an object")
    return body


async def list_payments(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    return web.json_response(dump_payments(await controller.get_all_payments()))


async def list_pending_payments(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    return web.json_response(dump_payments(await controller.get_pending_payments()))


async def get_payment(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    record = await controller.get_payment(request.match_info["payment_id"])
    return web.json_response(dump_payment(record))


async def add_bill(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    data = BillCreate.model_validate(await _read_json(request))
    payment_id = await controller.add_bill(data)
    return web.json_response({"id": payment_id}, status=201)


async def add_transfer(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    data = TransferCreate.model_validate(await _read_json(request))
    payment_id = await controller.add_transfer(data)
    return web.json_response({"id": payment_id}, status=201)


async def cancel_payment(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    payment_id = request.match_info["payment_id"]
    await controller.cancel_payment(payment_id)
    return web.json_response({"id": payment_id, "status": "cancelled"})


async def trigger_payment(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    payment_id = request.match_info["payment_id"]
    final_status = await controller.trigger_payment(payment_id)
    return web.json_response(
        {"id": payment_id, "status": final_status.value if final_status else None}
    )


async def payment_status(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    scheduler = request.app.get(SCHEDULER_KEY)
    return web.json_response(
        {
            "scheduler_state": scheduler.state.value if scheduler else None,
            "payments": dump_payments(await controller.get_payment_status()),
        }
    )


def create_app(
    controller: PaymentController, scheduler: PaymentScheduler | None = None
) -> web.Application:
    """Build the operator application."""
    app = web.Application(middlewares=[error_middleware])
    app[CONTROLLER_KEY] = controller
    if scheduler is not None:
        app[SCHEDULER_KEY] = scheduler

    app.router.add_get("/payments", list_payments)
    app.router.add_get("/payments/pending", list_pending_payments)
    app.router.add_get("/payments/{payment_id}", get_payment)
    app.router.add_post("/payments/bills", add_bill)
    app.router.add_post("/payments/transfers", add_transfer)
    app.router.add_post("/payments/{payment_id}/cancel", cancel_payment)
    app.router.add_post("/payments/{payment_id}/trigger", trigger_payment)
    app.router.add_get("/status", payment_status)
    register_health_routes(app)
    return app


async def start_api_server(
    app: web.Application,
    host: str = "127.0.0.1",
    port: int = 8080,
) -> web.AppRunner:
    """
    Start operator API server.

    Args:
        app: Application from create_app
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Operator API started on {host}:{port}")
    logger.info(f"  - Payments: http://{host}:{port}/payments")
    logger.info(f"  - Health: http://{host}:{port}/health")

    return runner


async def stop_api_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop operator API server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping operator API server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Operator API server stopped successfully")
    except TimeoutError:
        logger.warning(f"Operator API cleanup timed out after {timeout}s")
