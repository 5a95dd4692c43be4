"""
Price service: owns the price cache and resilience tracker, runs the periodic
fetch cycle, and fans results out to registered listeners.

One service instance is built by the application's composition root (see
cli/watch.py) and shared; tests construct their own with a fake fetch client
and a manual scheduler.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol

from .config import ConfigStore, TickerConfig
from .core.errors import FetchFailed
from .providers.base import PriceFetcher, PriceSnapshot
from .providers.cache import PriceCache
from .providers.resilience import ResilienceTracker
from .scheduler import FetchScheduler, Scheduler

logger = logging.getLogger(__name__)


class PriceUpdateListener(Protocol):
    """Display-side callbacks. Expected to return quickly."""

    def on_prices_updated(self, prices: PriceSnapshot, is_online: bool) -> None: ...

    def on_price_update_failed(self, error: Exception) -> None: ...


class PriceService:
    """
    Fetch-on-demand plus an adaptive periodic cycle.

    The periodic cycle runs on the scheduler thread: fetch, then reschedule after
    max(refresh interval, backoff delay). On-demand fetch_prices() calls run on a
    separate executor and may overlap a periodic cycle; both update the same
    cache and tracker.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        client: PriceFetcher,
        *,
        cache: Optional[PriceCache] = None,
        tracker: Optional[ResilienceTracker] = None,
        scheduler_factory: Callable[[], Scheduler] = FetchScheduler,
        max_workers: int = 2,
    ) -> None:
        self._config_store = config_store
        self._client = client
        self._cache = cache if cache is not None else PriceCache()
        self._tracker = tracker if tracker is not None else ResilienceTracker()
        self._scheduler_factory = scheduler_factory
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="crypto-price-fetch")

        self._listeners: List[PriceUpdateListener] = []
        self._listeners_lock = threading.Lock()
        self._state_lock = threading.RLock()

        self._scheduler: Optional[Scheduler] = None
        self._periodic_enabled = False
        self._generation = 0
        self._online = False
        self._disposed = False

        config_store.add_config_change_listener(self)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def fetch_prices(self, symbols: Iterable[str]) -> "Future[PriceSnapshot]":
        """
        Start a fetch and return immediately. The future resolves to the live
        snapshot, or raises FetchFailed wrapping the client error.
        """
        symbol_list = list(symbols)
        done: Future = Future()
        if self._disposed:
            done.set_exception(FetchFailed(RuntimeError("price service is disposed")))
            return done
        if not symbol_list:
            done.set_result({})
            return done
        try:
            return self._executor.submit(self._fetch_now, symbol_list)
        except RuntimeError as exc:
            # Executor shut down by a concurrent dispose().
            done.set_exception(FetchFailed(exc))
            return done

    def _fetch_now(self, symbols: List[str]) -> PriceSnapshot:
        quote_symbol = self._config_store.get_config().quote_symbol
        try:
            prices = self._client.fetch(symbols, quote_symbol)
        except Exception as exc:
            self._handle_failure(exc)
            raise FetchFailed(exc) from exc

        with self._state_lock:
            if self._disposed:
                logger.debug("Service disposed during fetch, dropping %d prices", len(prices))
                return prices
            self._cache.put_all(prices)
            self._online = True
            self._tracker.on_success()
        self._notify_prices_updated(dict(prices), True)
        return prices

    def _handle_failure(self, error: Exception) -> None:
        with self._state_lock:
            self._tracker.on_failure(error)
            self._online = not self._tracker.is_in_fallback_mode()
            failures = self._tracker.consecutive_failures
        logger.warning("Price fetch failed (%d consecutive): %s", failures, error)

        cached = self._cache.get_all()
        if cached:
            self._notify_prices_updated(cached, False)
        self._notify_price_update_failed(error)

    def get_cached_prices(self) -> PriceSnapshot:
        return self._cache.get_all()

    def is_online(self) -> bool:
        with self._state_lock:
            return self._online and not self._tracker.is_in_fallback_mode()

    # ------------------------------------------------------------------
    # Periodic updates
    # ------------------------------------------------------------------

    @property
    def is_periodic_updates_enabled(self) -> bool:
        return self._periodic_enabled

    def start_periodic_updates(self) -> None:
        with self._state_lock:
            if self._periodic_enabled or self._disposed:
                return
            self._periodic_enabled = True
            self._generation += 1
            generation = self._generation
            scheduler = self._scheduler = self._scheduler_factory()
        logger.info("Periodic price updates started")
        scheduler.schedule_once(lambda: self._run_cycle(generation), 0)

    def stop_periodic_updates(self) -> None:
        with self._state_lock:
            was_enabled = self._periodic_enabled
            self._periodic_enabled = False
            self._generation += 1
            scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.shutdown()
        if was_enabled:
            logger.info("Periodic price updates stopped")

    def restart_periodic_updates(self) -> None:
        """Cancel the pending cycle and begin a new one now under the current config."""
        with self._state_lock:
            if not self._periodic_enabled:
                return
            self.stop_periodic_updates()
            self.start_periodic_updates()

    def _run_cycle(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        config = self._config_store.get_config()
        if config.symbols:
            try:
                self._fetch_now(list(config.symbols))
            except FetchFailed:
                # Already recorded and delivered to listeners.
                pass
        else:
            logger.debug("No symbols configured, skipping fetch")
        self._reschedule(generation)

    def _reschedule(self, generation: int) -> None:
        with self._state_lock:
            if not self._is_current(generation) or self._scheduler is None:
                return
            interval_ms = self._config_store.get_config().refresh_interval_ms
            delay_ms = max(interval_ms, self._tracker.retry_delay_ms())
            scheduler = self._scheduler
        scheduler.schedule_once(lambda: self._run_cycle(generation), delay_ms / 1000.0)

    def _is_current(self, generation: int) -> bool:
        return self._periodic_enabled and generation == self._generation

    # ------------------------------------------------------------------
    # Config changes
    # ------------------------------------------------------------------

    def on_config_changed(self, old_config: TickerConfig, new_config: TickerConfig) -> None:
        if not self._periodic_enabled:
            return
        if not old_config.fetch_settings_differ(new_config):
            return
        logger.info("Fetch settings changed, restarting periodic updates")
        self.restart_periodic_updates()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_price_update_listener(self, listener: PriceUpdateListener) -> None:
        if listener is None:
            return
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_price_update_listener(self, listener: PriceUpdateListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _listener_snapshot(self) -> List[PriceUpdateListener]:
        with self._listeners_lock:
            return list(self._listeners)

    def _notify_prices_updated(self, prices: PriceSnapshot, is_online: bool) -> None:
        for listener in self._listener_snapshot():
            try:
                listener.on_prices_updated(dict(prices), is_online)
            except Exception:
                logger.exception("Price update listener %r failed", listener)

    def _notify_price_update_failed(self, error: Exception) -> None:
        for listener in self._listener_snapshot():
            try:
                listener.on_price_update_failed(error)
            except Exception:
                logger.exception("Price failure listener %r failed", listener)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def resilience(self) -> ResilienceTracker:
        return self._tracker

    @property
    def last_successful_update(self) -> Optional[datetime]:
        return self._tracker.last_success_time

    def status_message(self) -> str:
        return self._tracker.status_message()

    def is_data_stale(self, threshold_minutes: int) -> bool:
        return self._tracker.is_data_stale(threshold_minutes)

    def dispose(self) -> None:
        """Stop updates, unsubscribe from config, drop listeners and cached prices."""
        self.stop_periodic_updates()
        with self._state_lock:
            self._disposed = True
        self._config_store.remove_config_change_listener(self)
        with self._listeners_lock:
            self._listeners.clear()
        self._cache.clear()
        self._executor.shutdown(wait=False)
