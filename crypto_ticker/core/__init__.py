"""
Stable facade: package-wide exception types. Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    ApiError,
    ConfigError,
    CryptoTickerError,
    DecodeError,
    FetchFailed,
    PriceFetchError,
    TransportError,
)

# Do not add exports without updating __all__.
__all__ = [
    "ApiError",
    "ConfigError",
    "CryptoTickerError",
    "DecodeError",
    "FetchFailed",
    "PriceFetchError",
    "TransportError",
]
