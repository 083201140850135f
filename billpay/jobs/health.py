"""
Health check endpoints for scheduler monitoring.

Mounted on the operator HTTP application.
"""

from aiohttp import web
from loguru import logger

from billpay.jobs.scheduler import PaymentScheduler, SchedulerState

SCHEDULER_KEY = web.AppKey("scheduler", PaymentScheduler)


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler status
    """
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "Scheduler not initialized",
            },
            status=503,
        )

    try:
        next_run = scheduler.next_run_time
        return web.json_response(
            {
                "status": "healthy" if scheduler.is_running else scheduler.state.value,
                "scheduler_running": scheduler.is_running,
                "scheduler_state": scheduler.state.value,
                "cron": scheduler.cron_expression,
                "next_run_time": next_run.isoformat() if next_run else None,
            }
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response(
            {
                "status": "unhealthy",
                "error": str(e),
            },
            status=503,
        )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        JSON response indicating if the scheduler accepts work
    """
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None or scheduler.state is not SchedulerState.RUNNING:
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
        }
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """
    Liveness check endpoint.

    Returns:
        JSON response indicating if the process is alive
    """
    return web.json_response(
        {
            "status": "alive",
            "alive": True,
        }
    )


def register_health_routes(app: web.Application) -> None:
    """Add /health, /readiness and /liveness."""
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
