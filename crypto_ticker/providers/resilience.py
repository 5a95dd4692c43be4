"""
Resilience primitives: consecutive-failure tracking, exponential backoff,
and the fallback (offline) mode that kicks in after sustained failure.

The tracker never runs a timer. Fallback expiry is a pure function of
(now, fallback_mode_start_time) and is only applied when someone asks.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)

FAILURE_THRESHOLD = 3
FALLBACK_DURATION = timedelta(minutes=5)
BASE_RETRY_DELAY_MS = 1_000
MAX_RETRY_DELAY_MS = 30_000
MAX_BACKOFF_EXPONENT = 5

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Elapsed whole minutes, truncated toward zero."""
    return int((end - start).total_seconds() // 60)


def fallback_expired(now: datetime, fallback_mode_start_time: Optional[datetime]) -> bool:
    if fallback_mode_start_time is None:
        return False
    return now - fallback_mode_start_time >= FALLBACK_DURATION


def backoff_delay_ms(consecutive_failures: int) -> int:
    """0 with no failures, else 1s doubling per failure, capped at 30s."""
    if consecutive_failures <= 0:
        return 0
    exponent = min(consecutive_failures - 1, MAX_BACKOFF_EXPONENT)
    return min(BASE_RETRY_DELAY_MS * (1 << exponent), MAX_RETRY_DELAY_MS)


@dataclass(frozen=True)
class ResilienceState:
    """Consistent point-in-time copy of the tracker fields."""

    consecutive_failures: int = 0
    last_success_time: Optional[datetime] = None
    fallback_mode_start_time: Optional[datetime] = None
    in_fallback_mode: bool = False


class ResilienceTracker:
    """
    Tracks fetch outcomes for one price source.

    States:
    - ONLINE: no failures since the last success.
    - RETRYING: 1..threshold-1 consecutive failures, backoff grows.
    - FALLBACK: threshold reached; cached data only.

    Transitions:
    - ONLINE/RETRYING -> FALLBACK: on the failure that reaches `FAILURE_THRESHOLD`.
    - FALLBACK -> ONLINE: on success, or lazily once `FALLBACK_DURATION` has
      elapsed since entry (checked in is_in_fallback_mode()).

    Every mutation happens under one lock so in_fallback_mode never disagrees
    with consecutive_failures for a reader.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or utc_now
        self._lock = threading.RLock()
        self._consecutive_failures = 0
        self._last_success_time: Optional[datetime] = None
        self._fallback_mode_start_time: Optional[datetime] = None
        self._in_fallback_mode = False
        self._last_error: Optional[str] = None

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def last_success_time(self) -> Optional[datetime]:
        return self._last_success_time

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def state(self) -> ResilienceState:
        with self._lock:
            return ResilienceState(
                consecutive_failures=self._consecutive_failures,
                last_success_time=self._last_success_time,
                fallback_mode_start_time=self._fallback_mode_start_time,
                in_fallback_mode=self._in_fallback_mode,
            )

    def on_failure(self, error: Optional[BaseException] = None) -> None:
        with self._lock:
            self._consecutive_failures += 1
            if error is not None:
                self._last_error = f"{type(error).__name__}: {error}"[:500]
            if self._consecutive_failures >= FAILURE_THRESHOLD and not self._in_fallback_mode:
                self._enter_fallback()
                logger.warning(
                    "Entering fallback mode after %d consecutive failures: %s",
                    self._consecutive_failures, self._last_error,
                )

    def on_success(self) -> None:
        with self._lock:
            self._consecutive_failures = 0
            self._last_success_time = self._clock()
            self._last_error = None
            if self._in_fallback_mode:
                self._exit_fallback()
                logger.info("Leaving fallback mode after successful fetch")

    def is_in_fallback_mode(self) -> bool:
        with self._lock:
            if self._in_fallback_mode and fallback_expired(self._clock(), self._fallback_mode_start_time):
                self._exit_fallback()
                logger.info("Fallback mode expired after %s", FALLBACK_DURATION)
            return self._in_fallback_mode

    def retry_delay_ms(self) -> int:
        with self._lock:
            return backoff_delay_ms(self._consecutive_failures)

    def is_data_stale(self, threshold_minutes: int) -> bool:
        with self._lock:
            if self._last_success_time is None:
                return True
            return whole_minutes_between(self._last_success_time, self._clock()) > threshold_minutes

    def status_message(self) -> str:
        """Human-readable status. Reads state only; expiry is evaluated but not applied."""
        with self._lock:
            now = self._clock()
            in_fallback = self._in_fallback_mode and not fallback_expired(now, self._fallback_mode_start_time)
            if in_fallback:
                return "Offline - Using cached data"
            if self._consecutive_failures > 0:
                return "Connection issues - Retrying..."
            if self._last_success_time is not None:
                minutes_ago = whole_minutes_between(self._last_success_time, now)
                if minutes_ago <= 0:
                    return "Online - Just updated"
                plural = "" if minutes_ago == 1 else "s"
                return f"Online - Updated {minutes_ago} minute{plural} ago"
            return "Starting up..."

    def reset(self) -> None:
        with self._lock:
            self._consecutive_failures = 0
            self._last_success_time = None
            self._last_error = None
            self._exit_fallback()

    def _enter_fallback(self) -> None:
        self._in_fallback_mode = True
        self._fallback_mode_start_time = self._clock()

    def _exit_fallback(self) -> None:
        self._in_fallback_mode = False
        self._fallback_mode_start_time = None
