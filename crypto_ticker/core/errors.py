"""
Shared exception types for crypto_ticker.
Stable surface; extend only.

PriceFetchError and its subclasses are raised by fetch clients and never leave
PriceService as raw exceptions: callers of fetch_prices only ever see FetchFailed.
"""

from __future__ import annotations

from typing import Optional


class CryptoTickerError(Exception):
    """Base exception for crypto_ticker; catch this for any package-raised error."""

    pass


class ConfigError(CryptoTickerError):
    """Raised when a configuration value fails validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


class PriceFetchError(CryptoTickerError):
    """Base for failures of a single remote price lookup."""

    pass


class TransportError(PriceFetchError):
    """Connection could not be established, was reset, or timed out."""

    pass


class ApiError(PriceFetchError):
    """Remote endpoint answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body[:200]}")


class DecodeError(PriceFetchError):
    """Response body is not the expected list of {symbol, price} records."""

    pass


class FetchFailed(CryptoTickerError):
    """Surfaced to callers of PriceService.fetch_prices; wraps the underlying cause."""

    def __init__(self, cause: BaseException, message: Optional[str] = None) -> None:
        self.cause = cause
        super().__init__(message or f"Failed to fetch prices: {cause}")


__all__ = [
    "ApiError",
    "ConfigError",
    "CryptoTickerError",
    "DecodeError",
    "FetchFailed",
    "PriceFetchError",
    "TransportError",
]
