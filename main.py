#!/usr/bin/env python3
"""
Quick Query — Entry Point
=========================

Resolves queries the way the launcher's search bar would and prints each
answer. Currency queries hit the live rate service.

Usage:
    python main.py                               # Built-in demo queries
    python main.py "10 feet to meters" "2^10"    # Your own queries
"""

from __future__ import annotations

import asyncio
import logging
import sys

from quick_query.config import EngineConfig
from quick_query.currency import FrankfurterRateService
from quick_query.models import QuickResult
from quick_query.resolver import QuickQueryEngine

# ─── Load .env if available (optional dependency) ────────────────────
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass


DEMO_QUERIES = [
    "2+2",
    "(1500*1.19)^2/3",
    "#ff0000 to hsl",
    "rgb(0, 128, 255) in oklch",
    "#000000 to cmyk",
    "10 feet to meters",
    "100 celsius to kelvin",
    "10 fahr",
    "20 usd in yen",
    "10 yen",
]


# ─── ANSI Color Constants ───────────────────────────────────────────

_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_result(query: str, result: QuickResult | None) -> None:
    """Print one query and its answer (or the lack of one)."""
    print(f"  {_BOLD}{query}{_RESET}")
    if result is None:
        print(f"    {_DIM}no result{_RESET}\n")
        return

    color = _YELLOW if result.is_preview else _GREEN
    label = "PREVIEW" if result.is_preview else result.kind.value.upper()
    print(f"    {color}[{label}]{_RESET} {result.display_query}")
    print(f"    {color}{_BOLD}{result.display_value}{_RESET}")
    if result.color_swatch:
        print(f"    {_DIM}swatch: {result.color_swatch}{_RESET}")
    print(f"    {_DIM}copy:   {result.copy_value}{_RESET}\n")


async def run(queries: list[str], config: EngineConfig) -> int:
    """Resolve every query in order.

    Returns:
        0 if every query produced a result, 1 otherwise.
    """
    unresolved = 0
    async with FrankfurterRateService(config.rates_url, config.http_timeout) as service:
        engine = QuickQueryEngine(service, config)
        for query in queries:
            result = await engine.resolve_once(query)
            print_result(query, result)
            if result is None:
                unresolved += 1
    return 0 if unresolved == 0 else 1


# ─── Main ────────────────────────────────────────────────────────────


def main():
    """Resolve the given (or demo) queries and print the answers."""
    config = EngineConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    queries = sys.argv[1:] or DEMO_QUERIES

    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  QUICK QUERY{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    exit_code = asyncio.run(run(queries, config))

    print(f"{'=' * _WIDTH}\n")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
