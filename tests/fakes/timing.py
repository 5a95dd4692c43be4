"""
Controllable time for tests: a settable clock and a scheduler that only runs
tasks when the test says so.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

FAKE_START = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock; advance() moves time forward."""

    def __init__(self, start: datetime = FAKE_START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, *, minutes: float = 0, seconds: float = 0) -> None:
        self.now = self.now + timedelta(minutes=minutes, seconds=seconds)


class ManualScheduler:
    """
    Scheduler fake holding at most one pending task, like FetchScheduler.
    run_pending() fires it on the calling thread.
    """

    def __init__(self) -> None:
        self.pending: Optional[Tuple[Callable[[], None], float]] = None
        self.delays: List[float] = []
        self._shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def schedule_once(self, task: Callable[[], None], delay_s: float) -> bool:
        if self._shutdown:
            return False
        self.pending = (task, delay_s)
        self.delays.append(delay_s)
        return True

    def cancel_pending(self) -> None:
        self.pending = None

    def shutdown(self, wait: bool = False, timeout_s: float = 5.0) -> None:
        self._shutdown = True
        self.pending = None

    def run_pending(self) -> bool:
        if self.pending is None:
            return False
        task, _ = self.pending
        self.pending = None
        task()
        return True


class ManualSchedulerFactory:
    """Hands out ManualSchedulers and remembers them; `current` is the latest one."""

    def __init__(self) -> None:
        self.created: List[ManualScheduler] = []

    def __call__(self) -> ManualScheduler:
        scheduler = ManualScheduler()
        self.created.append(scheduler)
        return scheduler

    @property
    def current(self) -> ManualScheduler:
        return self.created[-1]
