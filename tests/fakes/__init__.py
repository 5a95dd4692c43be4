"""Fake fetch clients, clock and scheduler for service tests (no live network, no real timers)."""

from .fetchers import (
    BlockingFetcher,
    FakeFetcher,
    FakeFetcherAlwaysFail,
    FakeFetcherFailNThenSucceed,
)
from .timing import FakeClock, ManualScheduler, ManualSchedulerFactory

__all__ = [
    "BlockingFetcher",
    "FakeClock",
    "FakeFetcher",
    "FakeFetcherAlwaysFail",
    "FakeFetcherFailNThenSucceed",
    "ManualScheduler",
    "ManualSchedulerFactory",
]
