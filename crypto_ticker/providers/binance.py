"""
Binance ticker price client.

Uses the public market-data API (no authentication required):
  GET https://data-api.binance.vision/api/v3/ticker/price?symbols=["BTCUSDT","ETHUSDT"]
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import requests

from ..config import api_base_url
from ..core.errors import ApiError, DecodeError, TransportError
from .base import PriceSnapshot, TickerPriceItem, base_symbol, trading_pair

logger = logging.getLogger(__name__)

BINANCE_BASE_URL = "https://data-api.binance.vision"
TICKER_PRICE_PATH = "/api/v3/ticker/price"
CONNECT_TIMEOUT_S = 10.0
READ_TIMEOUT_S = 10.0


def build_symbols_param(pairs: Iterable[str]) -> str:
    """Format: ["BTCUSDT","ETHUSDT"] (requests URL-escapes it)."""
    return "[" + ",".join(f'"{p}"' for p in pairs) + "]"


class BinanceTickerClient:
    """Fetch current prices for several symbols in one request."""

    def __init__(
        self,
        base_url: str = BINANCE_BASE_URL,
        *,
        connect_timeout_s: float = CONNECT_TIMEOUT_S,
        read_timeout_s: float = READ_TIMEOUT_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.connect_timeout_s = connect_timeout_s
        self.read_timeout_s = read_timeout_s

    @property
    def provider_name(self) -> str:
        return "binance"

    @property
    def url(self) -> str:
        return f"{self.base_url}{TICKER_PRICE_PATH}"

    def fetch(self, symbols: Iterable[str], quote_symbol: str) -> PriceSnapshot:
        pairs = [trading_pair(s, quote_symbol) for s in symbols]
        params = {"symbols": build_symbols_param(pairs)}

        try:
            resp = requests.get(
                self.url,
                params=params,
                timeout=(self.connect_timeout_s, self.read_timeout_s),
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransportError(f"Binance unreachable: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Binance request failed: {exc}") from exc

        if resp.status_code != 200:
            raise ApiError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeError(f"Binance response is not JSON: {exc}") from exc

        items = self._parse_items(data)
        prices: PriceSnapshot = {}
        for item in items:
            prices[base_symbol(item.symbol, quote_symbol)] = item.price
        logger.debug("binance: %d prices for %d pairs", len(prices), len(pairs))
        return prices

    @staticmethod
    def _parse_items(data: object) -> List[TickerPriceItem]:
        if not isinstance(data, list):
            raise DecodeError(f"Expected a JSON list, got {type(data).__name__}")
        return [TickerPriceItem.from_json(item) for item in data]


def create_default_client(base_url: Optional[str] = None) -> BinanceTickerClient:
    """Client pointed at the configured API base URL."""
    if base_url is None:
        base_url = api_base_url()
    return BinanceTickerClient(base_url)
