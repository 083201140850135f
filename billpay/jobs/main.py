"""
Service main entry point.

Wires store, settlement client, runner, selector, scheduler and the
operator API, then runs until SIGINT or SIGTERM.
"""

import asyncio
import signal
import sys
from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from billpay.api import create_app, start_api_server, stop_api_server
from billpay.config.database import create_engine, create_session_maker, init_models
from billpay.config.settings import Settings, settings
from billpay.jobs.initialization.logging import setup_logging
from billpay.jobs.scheduler import PaymentScheduler
from billpay.services.due_payment_selector import DuePaymentSelector
from billpay.services.payment_controller import PaymentController
from billpay.services.payment_runner import PaymentRunner, RetryPolicy
from billpay.services.payment_store import PaymentStore
from billpay.services.sample_data import seed_sample_payments
from billpay.services.settlement import SettlementClient, build_settlement_client
from billpay.utils.exceptions import SettlementConnectionError


@dataclass
class Components:
    """Everything a running service holds on to."""

    engine: AsyncEngine
    store: PaymentStore
    client: SettlementClient
    runner: PaymentRunner
    selector: DuePaymentSelector
    scheduler: PaymentScheduler
    controller: PaymentController


def build_components(
    config: Settings,
    engine: AsyncEngine | None = None,
    client: SettlementClient | None = None,
) -> Components:
    """
    Build the object graph from settings.

    Args:
        config: Settings to use
        engine: Existing engine (tests), created from config otherwise
        client: Settlement client override, built from config otherwise
    """
    engine = engine or create_engine(config.database_url, echo=config.database_echo)
    store = PaymentStore(create_session_maker(engine))
    client = client or build_settlement_client(config)
    runner = PaymentRunner(store, client, RetryPolicy.from_settings(config))
    selector = DuePaymentSelector(config.tzinfo)
    scheduler = PaymentScheduler(
        store,
        client,
        runner,
        selector,
        cron_expression=config.payment_check_cron,
        tz=config.tzinfo,
        recover_stale_processing=config.recover_stale_processing,
    )
    controller = PaymentController(store, scheduler, tz=config.tzinfo)
    return Components(
        engine=engine,
        store=store,
        client=client,
        runner=runner,
        selector=selector,
        scheduler=scheduler,
        controller=controller,
    )


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            logger.debug(f"Signal handler for {sig.name} not installed")


async def main(config: Settings = settings) -> int:
    """
    Run the service.

    Returns:
        Process exit code
    """
    setup_logging(config.log_level, config.log_file)
    logger.info("Starting bill payment scheduler service...")

    components = build_components(config)
    await init_models(components.engine)

    if config.seed_sample_data:
        await seed_sample_payments(components.store, components.controller)

    # Reads are served during the initial pass; triggers get 503 until RUNNING
    api_runner = await start_api_server(
        create_app(components.controller, components.scheduler),
        host=config.api_host,
        port=config.api_port,
    )

    try:
        await components.scheduler.start()
    except SettlementConnectionError as e:
        logger.error(f"Service not started: {e}")
        await stop_api_server(api_runner)
        await components.client.disconnect()
        await components.engine.dispose()
        return 1

    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)
    logger.success("Service started, waiting for shutdown signal")

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutdown signal received, stopping service...")
        await stop_api_server(api_runner)
        await components.scheduler.stop()
        await components.engine.dispose()
        logger.info("Service stopped")

    return 0


def run() -> None:
    """Blocking entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Service stopped by user (KeyboardInterrupt)")


if __name__ == "__main__":
    run()
