"""
Watch: live crypto prices in the terminal.

Composition root for the price subsystem: loads config (config.yaml <- env <- CLI
flags), builds one PriceService with the Binance client, registers a terminal
listener, and runs periodic updates until Ctrl+C.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from ..config import ConfigStore, TickerConfig, get_config, load_ticker_config
from ..core.errors import ConfigError, FetchFailed
from ..formatting import format_details, format_ticker_line
from ..providers.binance import create_default_client
from ..providers.cache import PriceCache
from ..service import PriceService


class TerminalListener:
    """Prints one status line per update, prefixed with the local time."""

    def __init__(self, service: PriceService, config_store: ConfigStore, out: Optional[TextIO] = None) -> None:
        self._service = service
        self._config_store = config_store
        self._out = out if out is not None else sys.stdout
        self._lock = threading.Lock()

    def on_prices_updated(self, prices: Dict[str, Decimal], is_online: bool) -> None:
        line = format_ticker_line(prices, self._config_store.get_config(), is_online=is_online)
        with self._lock:
            self._write(line)

    def on_price_update_failed(self, error: Exception) -> None:
        with self._lock:
            self._write(f"ERR  {error}  [{self._service.status_message()}]")

    def _write(self, msg: str) -> None:
        self._out.write(f"{datetime.now().strftime('%H:%M:%S')}  {msg}\n")
        self._out.flush()


def _apply_overrides(config: TickerConfig, args: argparse.Namespace) -> TickerConfig:
    if args.symbols:
        config = replace(config, symbols=tuple(s for s in args.symbols.split(",") if s.strip()))
    if args.quote:
        config = replace(config, quote_symbol=args.quote)
    if args.interval_ms is not None:
        config = replace(config, refresh_interval_ms=args.interval_ms)
    if args.digits is not None:
        config = replace(config, fraction_digits=args.digits)
    if args.icon:
        config = replace(config, show_icon=True)
    return config.sanitize().require_valid()


def build_service(config_store: ConfigStore, api_url: str, max_cache_entries: int) -> PriceService:
    return PriceService(
        config_store,
        create_default_client(api_url),
        cache=PriceCache(max_cache_entries),
    )


def _run_once(service: PriceService, config: TickerConfig, out: TextIO) -> int:
    try:
        prices = service.fetch_prices(config.symbols).result()
    except FetchFailed as exc:
        print(f"ERR  {exc}", file=sys.stderr)
        return 1
    for line in format_details(prices, config, is_online=service.is_online(), status_message=service.status_message()):
        out.write(line + "\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="crypto-ticker", description="Watch crypto prices from the Binance ticker API")
    parser.add_argument("--config", default=None, help="Path to config YAML (default: config.yaml at repo root)")
    parser.add_argument("--symbols", default=None, metavar="CSV", help='Assets to watch, e.g. "BTC,ETH,SOL" (overrides config)')
    parser.add_argument("--quote", default=None, metavar="SYMBOL", help="Quote symbol, e.g. USDT (overrides config)")
    parser.add_argument("--interval-ms", dest="interval_ms", type=int, default=None, metavar="MS", help="Refresh interval in milliseconds (1000-3600000)")
    parser.add_argument("--digits", type=int, default=None, metavar="N", help="Max fraction digits shown (0-8)")
    parser.add_argument("--icon", action="store_true", help="Prefix the ticker line with the bitcoin sign")
    parser.add_argument("--api-url", dest="api_url", default=None, help="Ticker API base URL (overrides config)")
    parser.add_argument("--once", action="store_true", help="Fetch once, print details and exit")
    parser.add_argument("--log-level", dest="log_level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_path = Path(args.config) if args.config else None
    merged = get_config(config_path)
    try:
        config = _apply_overrides(load_ticker_config(config_path), args)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    config_store = ConfigStore(config)
    service = build_service(
        config_store,
        args.api_url or str(merged["api"]["base_url"]),
        int(merged["cache"]["max_entries"]),
    )
    try:
        if args.once:
            return _run_once(service, config, sys.stdout)

        service.add_price_update_listener(TerminalListener(service, config_store))
        print(f"Watching {', '.join(config.symbols)} in {config.quote_symbol} every {config.refresh_interval_ms}ms. Stop with Ctrl+C.", flush=True)
        service.start_periodic_updates()
        stop = threading.Event()
        try:
            while not stop.wait(1.0):
                pass
        except KeyboardInterrupt:
            print("\nStopped.", flush=True)
    finally:
        service.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
