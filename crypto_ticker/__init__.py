"""
Top-level public API surface. Stable facades only.
Canonical entrypoint: import crypto_ticker; build a PriceService from a ConfigStore and a fetch client.
Does not import cli.
"""

from __future__ import annotations

from . import core, providers
from ._version import __version__
from .config import ConfigStore, TickerConfig, load_ticker_config
from .service import PriceService, PriceUpdateListener

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "ConfigStore",
    "PriceService",
    "PriceUpdateListener",
    "TickerConfig",
    "core",
    "load_ticker_config",
    "providers",
]
