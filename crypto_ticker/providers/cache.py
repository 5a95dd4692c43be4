"""
Last-known-good price cache.

When the remote source fails, the service keeps serving whatever this cache
holds. Size is bounded: once a write pushes the entry count past capacity,
the oldest-written symbols are dropped.
"""
from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100


class PriceCache:
    """Bounded symbol -> price store. All reads return copies."""

    def __init__(self, capacity: int = DEFAULT_MAX_ENTRIES) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._lock = threading.Lock()
        # Insertion order doubles as write order (oldest first).
        self._store: Dict[str, Decimal] = {}

    def get(self, symbol: str) -> Optional[Decimal]:
        with self._lock:
            return self._store.get(symbol)

    def get_all(self) -> Dict[str, Decimal]:
        with self._lock:
            return dict(self._store)

    def put_all(self, prices: Mapping[str, Decimal]) -> None:
        with self._lock:
            for symbol, price in prices.items():
                self._store.pop(symbol, None)
                self._store[symbol] = price
            overflow = len(self._store) - self.capacity
            if overflow > 0:
                for symbol in list(self._store)[:overflow]:
                    del self._store[symbol]
                logger.debug("Price cache over capacity, evicted %d entries", overflow)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, symbol: object) -> bool:
        with self._lock:
            return symbol in self._store
