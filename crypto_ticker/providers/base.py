"""
Fetch client interface and wire record.

A fetch client performs exactly one remote lookup per call and keeps no state
between calls. Retry policy belongs to the caller (see PriceService).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Protocol, runtime_checkable

from ..core.errors import DecodeError

PriceSnapshot = Dict[str, Decimal]

# Plain decimal literal as sent on the wire; no underscores, no NaN/Infinity.
PRICE_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True)
class TickerPriceItem:
    """One record of the ticker response, e.g. {"symbol": "BTCUSDT", "price": "108699.99000000"}."""

    symbol: str
    price: Decimal

    @classmethod
    def from_json(cls, item: Any) -> TickerPriceItem:
        if not isinstance(item, Mapping):
            raise DecodeError(f"Expected an object, got {type(item).__name__}")
        symbol = item.get("symbol")
        raw_price = item.get("price")
        if not isinstance(symbol, str) or not symbol:
            raise DecodeError(f"Missing or invalid 'symbol' in {item!r}")
        if not isinstance(raw_price, str):
            raise DecodeError(f"Missing or non-string 'price' for {symbol}")
        return cls(symbol=symbol, price=parse_price(raw_price, symbol))


def parse_price(raw: str, symbol: str = "?") -> Decimal:
    """Exact decimal from the wire string. Rejects garbage, NaN and infinities."""
    text = raw.strip()
    if not PRICE_PATTERN.match(text):
        raise DecodeError(f"Invalid price {raw!r} for {symbol}")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise DecodeError(f"Invalid price {raw!r} for {symbol}") from exc


def trading_pair(symbol: str, quote_symbol: str) -> str:
    return f"{symbol}{quote_symbol}"


def base_symbol(pair: str, quote_symbol: str) -> str:
    """Strip the quote suffix from a trading pair ("BTCUSDT", "USDT" -> "BTC")."""
    if quote_symbol and pair.endswith(quote_symbol) and len(pair) > len(quote_symbol):
        return pair[: -len(quote_symbol)]
    return pair


@runtime_checkable
class PriceFetcher(Protocol):
    """Protocol for one-shot price lookups of several symbols against one quote symbol."""

    @property
    def provider_name(self) -> str: ...

    def fetch(self, symbols: Iterable[str], quote_symbol: str) -> PriceSnapshot:
        """Return prices keyed by base symbol. Raises PriceFetchError subclasses on failure."""
        ...
