"""
Text rendering of price snapshots for terminal and status-line display.

Prices stay Decimal until this point; rounding happens here and only here
(ROUND_HALF_EVEN, at most fraction_digits decimals, trailing zeros dropped).
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import List, Mapping, Optional

from .config import TickerConfig

TICKER_PREFIX = "₿ "
NO_DATA = "No Data"


def format_price(price: Decimal, fraction_digits: int, *, grouping: bool = False) -> str:
    """
    format_price(Decimal("108699.99"), 0) -> "108700"
    format_price(Decimal("0.10000"), 3) -> "0.1"
    format_price(Decimal("1234.5"), 2, grouping=True) -> "1,234.5"
    """
    with localcontext() as ctx:
        # Enough digits for the integer part plus the requested fraction.
        ctx.prec = max(ctx.prec, price.adjusted() + fraction_digits + 2)
        quantized = price.quantize(Decimal(1).scaleb(-fraction_digits), rounding=ROUND_HALF_EVEN)
    text = f"{quantized:,f}" if grouping else f"{quantized:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def format_ticker_line(
    prices: Mapping[str, Decimal],
    config: TickerConfig,
    *,
    is_online: bool = True,
    has_error: bool = False,
) -> str:
    """One-line summary in configured symbol order: "₿ BTC: 108699.99 | ETH: 2500.1"."""
    if not prices:
        return NO_DATA
    parts = [
        f"{symbol}: {format_price(prices[symbol], config.fraction_digits)}"
        for symbol in config.symbols
        if symbol in prices
    ]
    prefix = TICKER_PREFIX if config.show_icon else ""
    if not parts:
        return prefix + NO_DATA
    line = prefix + " | ".join(parts)
    if not is_online and not has_error:
        line += " (Cached)"
    return line


def status_label(is_online: bool, has_error: bool) -> str:
    if has_error:
        return "Error"
    return "Live" if is_online else "Cached"


def format_details(
    prices: Mapping[str, Decimal],
    config: TickerConfig,
    *,
    is_online: bool,
    has_error: bool = False,
    status_message: Optional[str] = None,
) -> List[str]:
    """Multi-line view: one grouped price per symbol with its quote, then status."""
    lines: List[str] = []
    for symbol in config.symbols:
        price = prices.get(symbol)
        if price is not None:
            lines.append(f"{symbol}: {format_price(price, config.fraction_digits, grouping=True)} {config.quote_symbol}")
    if not lines:
        lines.append(NO_DATA)
    lines.append(f"Status: {status_label(is_online, has_error)}")
    if status_message:
        lines.append(status_message)
    return lines
