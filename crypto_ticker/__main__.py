"""Allow python -m crypto_ticker to print help."""
from __future__ import annotations

from . import __version__

_HELP = f"""\
crypto-ticker {__version__}

Run from repo root:
  python cli/watch.py                 Live prices in the terminal (Ctrl+C to stop)
  python cli/watch.py --once          Fetch once, print, exit
  python cli/watch.py --symbols BTC,ETH,SOL --quote USDC --interval-ms 15000
  python -m pytest -q                 Run test suite

Installed as package:
  crypto-ticker                       Same as python cli/watch.py

Config: config.yaml at repo root (or CRYPTO_TICKER_CONFIG), overridden by
CRYPTO_TICKER_SYMBOLS, CRYPTO_TICKER_QUOTE, CRYPTO_TICKER_REFRESH_MS, CRYPTO_TICKER_API_URL.
"""


def main() -> int:
    print(_HELP)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
