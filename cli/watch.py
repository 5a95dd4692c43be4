#!/usr/bin/env python3
"""
Watch live crypto prices in the terminal.
Usage: python cli/watch.py [--symbols BTC,ETH] [--quote USDT] [--interval-ms 60000] [--once]
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from crypto_ticker.cli.watch import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
