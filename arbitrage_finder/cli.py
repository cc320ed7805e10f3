"""
Arbitrage Finder CLI
====================
Runs the pipeline once for a market URL and prints the response envelope.

Usage:
    arbitrage-finder https://polymarket.com/event/fed-decision-in-march --model gpt-4.1
    arbitrage-finder https://kalshi.com/markets/kxfed/fed-meeting/KXFED-26MAR --model grok-4-fast
    arbitrage-finder --serve --port 8000
"""

import argparse
import json
import sys
from typing import List, Optional

import uvicorn

from .config import configure_logging, get_settings
from .pipeline import find_arbitrage


DEFAULT_MODEL = "gpt-4.1-mini"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arbitrage-finder",
        description="Find Polymarket/Kalshi arbitrage for a market URL",
    )
    parser.add_argument("url", nargs="?", help="Polymarket or Kalshi market URL")
    parser.add_argument("--model", default=DEFAULT_MODEL, help=f"Model identifier (default: {DEFAULT_MODEL})")
    parser.add_argument("--serve", action="store_true", help="Start the HTTP API instead")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.serve:
        uvicorn.run("arbitrage_finder.api_server:app", host=args.host, port=args.port)
        return 0

    if not args.url:
        parser.error("url is required unless --serve is given")

    configure_logging(get_settings().log_level)
    result = find_arbitrage({"url": args.url, "model": args.model})
    print(json.dumps(result.envelope, indent=2))
    return 0 if result.envelope["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
