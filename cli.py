#!/usr/bin/env python3
"""
CLI entry point for the Binance Futures bot helpers.

Usage examples
--------------
Next order after two stop-losses, side from the long/short ratio::

    python cli.py plan --stop-loss-times 2

Largest quantity the free balance can open::

    python cli.py available

Exit codes: 0 success, 1 fatal error, 2 transient error (retry later).
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

# ── Bootstrap ──────────────────────────────────────────────────────────────
# Ensure the package root is on sys.path so ``futures_bot`` can be imported
# when this script is executed directly (``python cli.py …``).
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
if SCRIPT_DIR not in sys.path:
    sys.path.insert(0, SCRIPT_DIR)

from futures_bot.client import BinanceFuturesClient
from futures_bot.config import load_client_settings, load_notify_settings, load_trade_config
from futures_bot.errors import FuturesBotError, is_fatal
from futures_bot.logging_config import setup_logging
from futures_bot.notifications import build_notifier
from futures_bot.planner import OrderPlan, OrderPlanner
from futures_bot.pricing import PricingEngine
from futures_bot.signing import RequestSigner

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_TRANSIENT = 2

# ── Argument parser ────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Pricing helpers for a Binance Futures (USDT-M) bot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python cli.py price\n"
            "  python cli.py plan --stop-loss-times 2 --side LONG\n"
            "  python cli.py sign 'symbol=BTCUSDT&timestamp=1700000000000'\n"
        ),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show API debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("price", help="Current mark price of SYMBOL")
    sub.add_parser("balance", help="Available QUOTE_CURRENCY balance")
    sub.add_parser("side", help="Side suggested by the top-trader long/short ratio")
    sub.add_parser("available", help="Largest quantity the balance can open")

    plan = sub.add_parser("plan", help="Quantity and TP/SL prices of the next order")
    plan.add_argument(
        "--stop-loss-times", type=int, default=0,
        help="Consecutive stop-losses so far (default 0)",
    )
    plan.add_argument(
        "--side", type=str.upper, choices=["LONG", "SHORT", "BUY", "SELL"], default=None,
        help="Force a side instead of following the long/short ratio",
    )

    sign = sub.add_parser("sign", help="HMAC-SHA256 signature of a query string")
    sign.add_argument("query", help="URL-encoded query string")
    return parser


def format_plan(plan: OrderPlan) -> str:
    """Human-friendly summary of an ``OrderPlan``."""
    lines = [
        "─── Next Order ───────────────────────────────",
        f"  Symbol      : {plan.symbol}",
        f"  Side        : {plan.side.value} ({plan.side.order_side})",
        f"  Quantity    : {plan.quantity}",
        f"  Mark Price  : {plan.mark_price}",
        f"  Take Profit : {plan.prices.take_profit_price}",
        f"  Stop Loss   : {plan.prices.stop_loss_price}",
        "───────────────────────────────────────────────",
    ]
    return "\n".join(lines)


# ── Main ───────────────────────────────────────────────────────────────────


def run(args: argparse.Namespace) -> int:
    if args.command == "sign":
        signer = RequestSigner(load_client_settings().api_secret)
        print(signer.sign(args.query))
        return EXIT_OK

    engine = PricingEngine(load_trade_config())
    notifier = build_notifier(load_notify_settings())

    with BinanceFuturesClient(load_client_settings()) as client:
        planner = OrderPlanner(engine, market=client, account=client, notifier=notifier)

        if args.command == "price":
            print(planner.guard(planner.mark_price))
        elif args.command == "balance":
            print(planner.guard(planner.available_balance))
        elif args.command == "side":
            print(planner.guard(planner.suggest_side).value)
        elif args.command == "available":
            quantity = planner.guard(planner.available_quantity)
            print(engine.format_quantity(quantity))
        elif args.command == "plan":
            plan = planner.guard(planner.plan_next_order, args.stop_loss_times, args.side)
            print(format_plan(plan))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    # Load .env for API keys and trade settings
    load_dotenv(os.path.join(SCRIPT_DIR, ".env"))
    load_dotenv(find_dotenv(usecwd=True))

    args = build_parser().parse_args(argv)
    logger = setup_logging(verbose=args.verbose)

    try:
        return run(args)
    except FuturesBotError as exc:
        if is_fatal(exc):
            logger.error("%s: %s", type(exc).__name__, exc)
            return EXIT_FATAL
        logger.warning("Temporary failure, try again later: %s", exc)
        return EXIT_TRANSIENT
    except Exception:
        logger.exception("Unexpected error while running %r", args.command)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
