#!/usr/bin/env python3
"""Command-line interface for the UTR reconciler.

Usage:
    utr-recon init-db
    utr-recon submit-utr --utr RRN123456789 --order-id ORD-1
    utr-recon verify-gateway --gateway-id <id>
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from .database import (
    GatewayConfigRepository,
    close_db,
    get_db_context,
    init_db,
)
from .errors import GatewayNotFoundError
from .reconciliation import GatewayVerificationService, ReconciliationService

logger = logging.getLogger(__name__)


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


async def init_db_async(database_url: Optional[str] = None) -> int:
    await init_db(database_url)
    await close_db()
    _print({"success": True, "message": "Database initialized"})
    return 0


async def submit_utr_async(utr: str, order_id: str, database_url: Optional[str] = None) -> int:
    """Submit one UTR and print the outcome.

    Returns:
        0 when a settled transaction was created, 1 otherwise.
    """
    await init_db(database_url, create_tables=False)
    try:
        async with get_db_context() as session:
            service = ReconciliationService.from_session(session)
            result = await service.submit_utr(utr, order_id)
    finally:
        await close_db()

    payload = result.to_response()
    payload["state"] = result.state.value
    if result.transaction_id:
        payload["transactionId"] = result.transaction_id
    _print(payload)
    return 0 if result.success else 1


async def verify_gateway_async(gateway_id: str, database_url: Optional[str] = None) -> int:
    """Re-verify a stored gateway configuration and print its status.

    Returns:
        0 if the gateway is active, 1 if it is not, 2 if it does not exist.
    """
    await init_db(database_url, create_tables=False)
    try:
        async with get_db_context() as session:
            service = GatewayVerificationService(GatewayConfigRepository(session))
            try:
                result = await service.verify_gateway(gateway_id)
            except GatewayNotFoundError as e:
                _print({"success": False, "message": e.message})
                return 2
    finally:
        await close_db()

    _print({
        "success": result.is_active,
        "status": result.status.value,
        "details": result.details,
    })
    return 0 if result.is_active else 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="utr-recon",
        description="Reconcile UPI payments by UTR against gateway ledgers.",
    )
    parser.add_argument(
        "--database-url",
        help="Database URL (default: DATABASE_URL or local SQLite)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create database tables")

    submit_parser = subparsers.add_parser("submit-utr", help="Reconcile a UTR against an order")
    submit_parser.add_argument("--utr", required=True, help="UTR reported by the payer")
    submit_parser.add_argument("--order-id", required=True, help="Public order ID")

    verify_parser = subparsers.add_parser("verify-gateway", help="Re-verify gateway credentials")
    verify_parser.add_argument("--gateway-id", required=True, help="Gateway configuration ID")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Optional list of command-line arguments (for testing).

    Returns:
        Exit code.
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == "init-db":
        return asyncio.run(init_db_async(parsed_args.database_url))
    if parsed_args.command == "submit-utr":
        return asyncio.run(submit_utr_async(parsed_args.utr, parsed_args.order_id, parsed_args.database_url))
    if parsed_args.command == "verify-gateway":
        return asyncio.run(verify_gateway_async(parsed_args.gateway_id, parsed_args.database_url))

    return 0


if __name__ == "__main__":
    sys.exit(main())
