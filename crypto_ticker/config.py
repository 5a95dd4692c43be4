"""
Load ticker config from config.yaml with optional env overrides.

Layering: built-in defaults <- config.yaml <- env. The loaded mapping is turned
into an immutable TickerConfig; ConfigStore holds the current value and tells
subscribers about every change as an (old, new) pair.
"""
from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Tuple

import yaml

from .core.errors import ConfigError

logger = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]{2,10}$")

MIN_REFRESH_INTERVAL_MS = 1_000
MAX_REFRESH_INTERVAL_MS = 3_600_000
MIN_FRACTION_DIGITS = 0
MAX_FRACTION_DIGITS = 8

DEFAULT_SYMBOLS: Tuple[str, ...] = ("BTC", "ETH")
DEFAULT_QUOTE_SYMBOL = "USDT"
DEFAULT_REFRESH_INTERVAL_MS = 60_000
DEFAULT_FRACTION_DIGITS = 3

# Defaults if no YAML or env
_DEFAULTS = {
    "ticker": {
        "symbols": list(DEFAULT_SYMBOLS),
        "quote_symbol": DEFAULT_QUOTE_SYMBOL,
        "refresh_interval_ms": DEFAULT_REFRESH_INTERVAL_MS,
        "fraction_digits": DEFAULT_FRACTION_DIGITS,
        "show_icon": False,
        "show_in_status_bar": True,
    },
    "api": {
        "base_url": "https://data-api.binance.vision",
    },
    "cache": {"max_entries": 100},
}


def is_valid_symbol(symbol: str) -> bool:
    """True if symbol is 2-10 uppercase letters or digits."""
    return bool(symbol) and SYMBOL_PATTERN.match(symbol) is not None


def _as_int(value: Any, default: int, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r, using %d", key, value, default)
        return default


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def error_message(self) -> Optional[str]:
        return "\n".join(self.errors) if self.errors else None

    def warning_message(self) -> Optional[str]:
        return "\n".join(self.warnings) if self.warnings else None


@dataclass(frozen=True)
class TickerConfig:
    """Immutable snapshot of the ticker settings. Consumers only ever read it."""

    symbols: Tuple[str, ...] = DEFAULT_SYMBOLS
    quote_symbol: str = DEFAULT_QUOTE_SYMBOL
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    fraction_digits: int = DEFAULT_FRACTION_DIGITS
    show_icon: bool = False
    show_in_status_bar: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TickerConfig:
        """Build from a plain mapping (the "ticker" section of config.yaml). Unknown keys are ignored."""
        symbols = data.get("symbols", DEFAULT_SYMBOLS)
        if isinstance(symbols, str):
            symbols = symbols.split(",")
        return cls(
            symbols=tuple(str(s) for s in (symbols or ())),
            quote_symbol=str(data.get("quote_symbol", DEFAULT_QUOTE_SYMBOL) or ""),
            refresh_interval_ms=_as_int(
                data.get("refresh_interval_ms", DEFAULT_REFRESH_INTERVAL_MS),
                DEFAULT_REFRESH_INTERVAL_MS,
                "refresh_interval_ms",
            ),
            fraction_digits=_as_int(data.get("fraction_digits", DEFAULT_FRACTION_DIGITS), DEFAULT_FRACTION_DIGITS, "fraction_digits"),
            show_icon=bool(data.get("show_icon", False)),
            show_in_status_bar=bool(data.get("show_in_status_bar", True)),
        )

    def to_mapping(self) -> dict:
        return {
            "symbols": list(self.symbols),
            "quote_symbol": self.quote_symbol,
            "refresh_interval_ms": self.refresh_interval_ms,
            "fraction_digits": self.fraction_digits,
            "show_icon": self.show_icon,
            "show_in_status_bar": self.show_in_status_bar,
        }

    def is_valid(self) -> bool:
        return self.validate().is_valid

    def validate(self) -> ValidationResult:
        result = ValidationResult()

        if not self.symbols:
            result.add_error("Symbols list cannot be empty")
        else:
            for symbol in self.symbols:
                if not symbol or not symbol.strip():
                    result.add_error("Symbol cannot be empty")
                elif not is_valid_symbol(symbol.strip()):
                    result.add_error(f"Invalid symbol format: {symbol}")
            if len(set(self.symbols)) != len(self.symbols):
                result.add_warning("Symbols list contains duplicates")

        if not self.quote_symbol or not self.quote_symbol.strip():
            result.add_error("Quote symbol cannot be empty")
        elif not is_valid_symbol(self.quote_symbol.strip()):
            result.add_error(f"Invalid quote symbol format: {self.quote_symbol}")
        elif self.quote_symbol in self.symbols:
            result.add_warning(f"Quote symbol {self.quote_symbol} is also listed as an asset")

        if self.refresh_interval_ms < MIN_REFRESH_INTERVAL_MS:
            result.add_error("Refresh interval must be at least 1000ms (1 second)")
        elif self.refresh_interval_ms > MAX_REFRESH_INTERVAL_MS:
            result.add_error("Refresh interval must be at most 3600000ms (1 hour)")

        if self.fraction_digits < MIN_FRACTION_DIGITS:
            result.add_error("Fraction digits cannot be negative")
        elif self.fraction_digits > MAX_FRACTION_DIGITS:
            result.add_error("Fraction digits cannot exceed 8")

        return result

    def require_valid(self) -> TickerConfig:
        """Return self, or raise ConfigError listing every validation error."""
        result = self.validate()
        if not result.is_valid:
            raise ConfigError(result.errors)
        return self

    def sanitize(self) -> TickerConfig:
        """
        Fix what can be fixed: trim/uppercase/dedupe symbols (order kept),
        uppercase the quote symbol, clamp interval and fraction digits.
        """
        seen: set = set()
        symbols: List[str] = []
        for raw in self.symbols:
            s = (raw or "").strip().upper()
            if s and s not in seen:
                seen.add(s)
                symbols.append(s)
        return replace(
            self,
            symbols=tuple(symbols),
            quote_symbol=(self.quote_symbol or "").strip().upper(),
            refresh_interval_ms=min(max(self.refresh_interval_ms, MIN_REFRESH_INTERVAL_MS), MAX_REFRESH_INTERVAL_MS),
            fraction_digits=min(max(self.fraction_digits, MIN_FRACTION_DIGITS), MAX_FRACTION_DIGITS),
        )

    def fetch_settings_differ(self, other: TickerConfig) -> bool:
        """True if other changes what or how often the periodic cycle fetches."""
        return (
            self.symbols != other.symbols
            or self.quote_symbol != other.quote_symbol
            or self.refresh_interval_ms != other.refresh_interval_ms
        )


# ---------------------------------------------------------------------------
# YAML + env loading
# ---------------------------------------------------------------------------


def _config_yaml_path() -> Path:
    """Config.yaml lives at repo root (parent of package dir) unless CRYPTO_TICKER_CONFIG points elsewhere."""
    override = os.environ.get("CRYPTO_TICKER_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml(path: Optional[Path] = None) -> dict:
    config_path = path or _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    symbols = os.environ.get("CRYPTO_TICKER_SYMBOLS")
    if symbols:
        overrides.setdefault("ticker", {})["symbols"] = [s for s in symbols.split(",") if s.strip()]
    quote = os.environ.get("CRYPTO_TICKER_QUOTE")
    if quote:
        overrides.setdefault("ticker", {})["quote_symbol"] = quote
    refresh = os.environ.get("CRYPTO_TICKER_REFRESH_MS")
    if refresh:
        try:
            overrides.setdefault("ticker", {})["refresh_interval_ms"] = int(refresh)
        except ValueError:
            logger.warning("Ignoring non-integer CRYPTO_TICKER_REFRESH_MS=%r", refresh)
    api_url = os.environ.get("CRYPTO_TICKER_API_URL")
    if api_url:
        overrides.setdefault("api", {})["base_url"] = api_url
    return overrides


def get_config(path: Optional[Path] = None) -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml(path))
    merged = _deep_merge(merged, _env_overrides())
    return merged


def load_ticker_config(path: Optional[Path] = None) -> TickerConfig:
    """
    Sanitized TickerConfig from the merged config. Falls back to defaults when
    the loaded values are invalid even after sanitizing.
    """
    loaded = TickerConfig.from_mapping(get_config(path)["ticker"]).sanitize()
    result = loaded.validate()
    if not result.is_valid:
        logger.warning("Invalid ticker config, using defaults: %s", result.error_message())
        return TickerConfig()
    return loaded


# Convenience accessors
def api_base_url() -> str:
    return str(get_config()["api"]["base_url"])


# ---------------------------------------------------------------------------
# In-process store with change notification
# ---------------------------------------------------------------------------


class ConfigChangeListener(Protocol):
    def on_config_changed(self, old_config: TickerConfig, new_config: TickerConfig) -> None: ...


class ConfigStore:
    """
    Holds the current TickerConfig and notifies subscribers on change.

    Listeners run synchronously on the caller's thread in registration order;
    one failing listener does not stop the others.
    """

    def __init__(self, config: Optional[TickerConfig] = None) -> None:
        self._config = config or TickerConfig()
        self._lock = threading.Lock()
        self._listeners: List[ConfigChangeListener] = []

    def get_config(self) -> TickerConfig:
        return self._config

    def save_config(self, new_config: TickerConfig) -> None:
        with self._lock:
            old_config = self._config
            self._config = new_config
        self._notify(old_config, new_config)

    def reset_to_defaults(self) -> None:
        self.save_config(TickerConfig())

    def add_config_change_listener(self, listener: ConfigChangeListener) -> None:
        if listener is None:
            return
        with self._lock:
            self._listeners.append(listener)

    def remove_config_change_listener(self, listener: ConfigChangeListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, old_config: TickerConfig, new_config: TickerConfig) -> None:
        with self._lock:
            listeners: Iterable[ConfigChangeListener] = list(self._listeners)
        for listener in listeners:
            try:
                listener.on_config_changed(old_config, new_config)
            except Exception:
                logger.exception("Config change listener %r failed", listener)
