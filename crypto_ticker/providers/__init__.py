"""
Price acquisition building blocks.

A stateless fetch client (Binance ticker), the last-known-good price cache,
and the resilience tracker that drives backoff and fallback mode.
"""

from __future__ import annotations

from .base import PriceFetcher, PriceSnapshot, TickerPriceItem
from .binance import BinanceTickerClient, create_default_client
from .cache import PriceCache
from .resilience import ResilienceState, ResilienceTracker

__all__ = [
    "BinanceTickerClient",
    "PriceCache",
    "PriceFetcher",
    "PriceSnapshot",
    "ResilienceState",
    "ResilienceTracker",
    "TickerPriceItem",
    "create_default_client",
]
