"""
Single-thread delayed-task scheduler for the periodic price cycle.

Holds at most one pending task: scheduling replaces whatever was pending, so
there is never more than one fetch cycle queued. Shutdown is one-way; callers
that want to run again create a new scheduler.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Task = Callable[[], None]


class Scheduler(Protocol):
    def schedule_once(self, task: Task, delay_s: float) -> bool: ...

    def cancel_pending(self) -> None: ...

    def shutdown(self, wait: bool = False, timeout_s: float = 5.0) -> None: ...

    @property
    def is_shutdown(self) -> bool: ...


class FetchScheduler:
    """Runs delayed tasks on one dedicated daemon thread."""

    def __init__(self, name: str = "crypto-price-updater") -> None:
        self._cond = threading.Condition()
        self._pending: Optional[Tuple[float, Task]] = None
        self._shutdown = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def has_pending(self) -> bool:
        with self._cond:
            return self._pending is not None

    def schedule_once(self, task: Task, delay_s: float) -> bool:
        """Run task after delay_s seconds, replacing any pending task. False once shut down."""
        with self._cond:
            if self._shutdown:
                return False
            self._pending = (time.monotonic() + max(delay_s, 0.0), task)
            self._cond.notify_all()
        logger.debug("Scheduled next fetch cycle in %.3fs", delay_s)
        return True

    def cancel_pending(self) -> None:
        with self._cond:
            self._pending = None
            self._cond.notify_all()

    def shutdown(self, wait: bool = False, timeout_s: float = 5.0) -> None:
        """
        Drop the pending task and stop the worker thread. A task already running
        is not interrupted; with wait=True the caller blocks up to timeout_s for it.
        """
        with self._cond:
            self._shutdown = True
            self._pending = None
            self._cond.notify_all()
        if wait and threading.current_thread() is not self._thread:
            self._thread.join(timeout_s)

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._shutdown:
                    if self._pending is None:
                        self._cond.wait()
                        continue
                    remaining = self._pending[0] - time.monotonic()
                    if remaining <= 0:
                        break
                    self._cond.wait(remaining)
                if self._shutdown:
                    return
                _, task = self._pending
                self._pending = None
            try:
                task()
            except Exception:
                logger.exception("Scheduled task failed")
