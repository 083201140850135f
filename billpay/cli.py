"""
Command line interface.

Usage:
    billpay serve
    billpay list | pending | status
    billpay add-bill --barcode ... --amount 150.00 --due-date 2026-10-20 --beneficiary ...
    billpay add-transfer --destination-key ... --amount 500.00 [--scheduled-date ...]
    billpay cancel <payment_id>
    billpay trigger <payment_id>

Everything except serve works directly on the configured database and
prints JSON to stdout.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import datetime

from loguru import logger
from pydantic import ValidationError

from billpay import __version__
from billpay.config.database import init_models
from billpay.config.settings import Settings
from billpay.jobs import main as service
from billpay.jobs.initialization.logging import setup_logging
from billpay.schemas.payment import BillCreate, TransferCreate, dump_payment, dump_payments
from billpay.utils.exceptions import BillPayError, SettlementConnectionError


def _parse_when(value: str) -> datetime:
    """ISO date or datetime; a bare date means midnight."""
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date '{value}': {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="billpay",
        description="Recurring bill and transfer settlement scheduler",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("serve", help="Run scheduler and operator API until stopped")
    commands.add_parser("list", help="Show all payments")
    commands.add_parser("pending", help="Show pending and scheduled payments")
    commands.add_parser("status", help="Show all payments with current status")

    add_bill = commands.add_parser("add-bill", help="Add a barcode bill")
    add_bill.add_argument("--barcode", required=True)
    add_bill.add_argument("--amount", required=True)
    add_bill.add_argument("--due-date", required=True, type=_parse_when)
    add_bill.add_argument("--beneficiary", required=True)
    add_bill.add_argument("--description")

    add_transfer = commands.add_parser("add-transfer", help="Add an instant transfer")
    add_transfer.add_argument("--destination-key", required=True)
    add_transfer.add_argument("--amount", required=True)
    add_transfer.add_argument("--recipient-name")
    add_transfer.add_argument("--scheduled-date", type=_parse_when)
    add_transfer.add_argument("--description")

    cancel = commands.add_parser("cancel", help="Cancel a payment")
    cancel.add_argument("payment_id")

    trigger = commands.add_parser("trigger", help="Settle one payment now")
    trigger.add_argument("payment_id")

    return parser


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def _run_command(args: argparse.Namespace, config: Settings) -> int:
    if args.command == "trigger":
        # A one-shot trigger must not touch records another process is settling
        config = config.model_copy(update={"recover_stale_processing": False})

    components = service.build_components(config)
    controller = components.controller
    try:
        await init_models(components.engine)

        if args.command == "list":
            _print_json(dump_payments(await controller.get_all_payments()))
        elif args.command == "pending":
            _print_json(dump_payments(await controller.get_pending_payments()))
        elif args.command == "status":
            _print_json(dump_payments(await controller.get_payment_status()))
        elif args.command == "add-bill":
            data = BillCreate(
                barcode=args.barcode,
                amount=args.amount,
                due_date=args.due_date,
                beneficiary=args.beneficiary,
                description=args.description,
            )
            _print_json({"id": await controller.add_bill(data)})
        elif args.command == "add-transfer":
            data = TransferCreate(
                destination_key=args.destination_key,
                amount=args.amount,
                recipient_name=args.recipient_name,
                scheduled_date=args.scheduled_date,
                description=args.description,
            )
            _print_json({"id": await controller.add_transfer(data)})
        elif args.command == "cancel":
            await controller.cancel_payment(args.payment_id)
            _print_json({"id": args.payment_id, "status": "cancelled"})
        elif args.command == "trigger":
            try:
                await components.scheduler.start(initial_pass=False)
            except SettlementConnectionError:
                await components.client.disconnect()
                raise
            try:
                final_status = await controller.trigger_payment(args.payment_id)
            finally:
                await components.scheduler.stop()
            record = await controller.get_payment(args.payment_id)
            _print_json(dump_payment(record))
            return 0 if final_status is not None else 1
    finally:
        await components.engine.dispose()

    return 0


def main(argv: Sequence[str] | None = None, config: Settings | None = None) -> int:
    """
    Run one CLI command.

    Returns:
        Exit code: 0 on success, 1 on a billpay error, 2 on invalid input
    """
    args = build_parser().parse_args(argv)
    config = config or Settings()

    if args.command == "serve":
        try:
            return asyncio.run(service.main(config))
        except KeyboardInterrupt:
            logger.info("Service stopped by user (KeyboardInterrupt)")
            return 0

    setup_logging(config.log_level, log_file=None)
    try:
        return asyncio.run(_run_command(args, config))
    except ValidationError as e:
        for error in e.errors(include_url=False):
            field = ".".join(str(part) for part in error["loc"])
            print(f"Invalid {field}: {error['msg']}", file=sys.stderr)
        return 2
    except BillPayError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
