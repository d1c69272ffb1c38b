# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""
InvestWatch CLI.

Usage:
    investwatch cache-stats
    investwatch cache-clear [--key KEY]
    investwatch coins [--limit N]
    investwatch prices bitcoin ethereum --currencies usd,mxn
    investwatch quote MSFT
    investwatch rates --base EUR
    investwatch convert USD MXN 100
    investwatch test {crypto,stock,forex}
    investwatch serve --port 8000

Environment variables:
    ALPHA_VANTAGE_API_KEY   - Alpha Vantage key (default: demo)
    EXCHANGE_RATE_API_KEY   - ExchangeRate-API key (no default; forex uses demo rates without it)
    CACHE_DURATION_MINUTES  - Default cache lifetime (default: 300)
    STORE_PATH              - SQLite file for the durable cache (default: out/investwatch.db)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _advisory(status: Any) -> None:
    if status.using_fallback:
        print(f"NOTE: {status.message or 'using fallback data'}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="investwatch",
        description="InvestWatch market data CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("cache-stats", help="List durable cache entries")

    p = sub.add_parser("cache-clear", help="Clear the whole cache or one key")
    p.add_argument("--key", default=None, help="Single cache key to remove")

    p = sub.add_parser("coins", help="Top coins by market cap")
    p.add_argument("--limit", type=int, default=10, help="Rows to print (default: 10)")

    p = sub.add_parser("prices", help="Spot prices for coin ids")
    p.add_argument("ids", nargs="+", help="CoinGecko coin ids")
    p.add_argument("--currencies", default="usd,mxn", help="Comma-separated (default: usd,mxn)")

    p = sub.add_parser("quote", help="Stock quote")
    p.add_argument("symbol")

    p = sub.add_parser("rates", help="Latest exchange rates")
    p.add_argument("--base", default="USD")

    p = sub.add_parser("convert", help="Convert an amount between currencies")
    p.add_argument("from_code", metavar="FROM")
    p.add_argument("to_code", metavar="TO")
    p.add_argument("amount", type=float)

    p = sub.add_parser("test", help="Provider connection test")
    p.add_argument("asset", choices=["crypto", "stock", "forex"])

    p = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    load_dotenv()

    try:
        return run_command(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.exception("Command failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run_command(args: argparse.Namespace, services: Any = None) -> int:
    if args.command == "serve":
        from investwatch.api.server import run

        run(host=args.host, port=args.port)
        return 0

    from investwatch.market.factory import build_services, run_connection_test
    from investwatch.market.providers.stock_provider import parse_quote
    from investwatch.market.resilient_client import FetchStatus

    services = services or build_services()
    status = FetchStatus()

    if args.command == "cache-stats":
        _print_json(services.cache.stats())
    elif args.command == "cache-clear":
        services.cache.clear(args.key)
        print(f"Cleared {'key ' + args.key if args.key else 'all cache entries'}")
    elif args.command == "coins":
        coins = services.crypto.get_coins(status=status)
        for coin in coins[: max(0, args.limit)]:
            print(f"{coin.get('symbol', '').upper():<8} {coin.get('name', ''):<24} {coin.get('current_price')}")
        _advisory(status)
    elif args.command == "prices":
        currencies = [c.strip() for c in args.currencies.split(",") if c.strip()]
        _print_json(services.crypto.get_prices(args.ids, currencies, status=status))
        _advisory(status)
    elif args.command == "quote":
        quote = parse_quote(services.stock.get_stock_quote(args.symbol.upper(), status=status))
        if quote is None:
            print(f"No quote for {args.symbol.upper()}", file=sys.stderr)
            return 1
        print(f"{quote.symbol} {quote.price:.2f} {quote.change:+.2f} ({quote.change_percent:+.2f}%)")
        _advisory(status)
    elif args.command == "rates":
        _print_json(services.forex.get_exchange_rates(args.base, status=status))
        _advisory(status)
    elif args.command == "convert":
        result = services.forex.convert_currency(args.from_code, args.to_code, args.amount, status=status)
        print(f"{args.amount} {args.from_code.upper()} = {result['result']:.4f} {args.to_code.upper()} (rate {result['rate']:.6f})")
        _advisory(status)
    elif args.command == "test":
        result = run_connection_test(services, args.asset)
        print(f"[{result['status'].upper()}] {args.asset}: {result['message']}")
        return 0 if result["status"] != "error" else 2
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
