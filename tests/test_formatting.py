"""Formatting of price snapshots for the ticker line and detail view."""
from __future__ import annotations

from decimal import Decimal

import pytest

from crypto_ticker.config import TickerConfig
from crypto_ticker.formatting import (
    NO_DATA,
    format_details,
    format_price,
    format_ticker_line,
    status_label,
)

PRICES = {"ETH": Decimal("2500.10000000"), "BTC": Decimal("108699.99000000")}


@pytest.mark.parametrize(
    "price,digits,expected",
    [
        ("108699.99000000", 3, "108699.99"),
        ("108699.99", 0, "108700"),
        ("0.10000", 3, "0.1"),
        ("100", 0, "100"),
        ("2500.00", 2, "2500"),
        ("0.123456789", 8, "0.12345679"),
        ("0.00001", 3, "0"),
        ("-0.0001", 3, "0"),
    ],
)
def test_format_price(price, digits, expected):
    assert format_price(Decimal(price), digits) == expected


def test_format_price_rounds_half_even():
    assert format_price(Decimal("2.5"), 0) == "2"
    assert format_price(Decimal("3.5"), 0) == "4"
    assert format_price(Decimal("0.125"), 2) == "0.12"


def test_format_price_grouping():
    assert format_price(Decimal("1234567.5"), 2, grouping=True) == "1,234,567.5"
    assert format_price(Decimal("999"), 2, grouping=True) == "999"


class TestTickerLine:
    def test_configured_order(self):
        config = TickerConfig(symbols=("BTC", "ETH"))
        assert format_ticker_line(PRICES, config) == "BTC: 108699.99 | ETH: 2500.1"

    def test_icon_prefix(self):
        config = TickerConfig(symbols=("ETH",), show_icon=True)
        assert format_ticker_line(PRICES, config) == "₿ ETH: 2500.1"

    def test_cached_marker_when_offline(self):
        config = TickerConfig(symbols=("BTC",))
        assert format_ticker_line(PRICES, config, is_online=False) == "BTC: 108699.99 (Cached)"

    def test_no_cached_marker_on_error(self):
        config = TickerConfig(symbols=("BTC",))
        assert format_ticker_line(PRICES, config, is_online=False, has_error=True) == "BTC: 108699.99"

    def test_empty_snapshot(self):
        assert format_ticker_line({}, TickerConfig(show_icon=True)) == NO_DATA

    def test_no_configured_symbol_present(self):
        assert format_ticker_line(PRICES, TickerConfig(symbols=("SOL",))) == NO_DATA
        assert format_ticker_line(PRICES, TickerConfig(symbols=("SOL",), show_icon=True)) == "₿ " + NO_DATA

    def test_digits_from_config(self):
        config = TickerConfig(symbols=("BTC",), fraction_digits=0)
        assert format_ticker_line(PRICES, config) == "BTC: 108700"


@pytest.mark.parametrize(
    "is_online,has_error,label",
    [(True, False, "Live"), (False, False, "Cached"), (True, True, "Error"), (False, True, "Error")],
)
def test_status_label(is_online, has_error, label):
    assert status_label(is_online, has_error) == label


def test_format_details():
    config = TickerConfig(symbols=("BTC", "SOL", "ETH"))
    lines = format_details(PRICES, config, is_online=True, status_message="Online - Just updated")
    assert lines == [
        "BTC: 108,699.99 USDT",
        "ETH: 2,500.1 USDT",
        "Status: Live",
        "Online - Just updated",
    ]


def test_format_details_without_data():
    lines = format_details({}, TickerConfig(), is_online=False)
    assert lines == [NO_DATA, "Status: Cached"]


def test_format_price_beyond_default_precision():
    price = Decimal("123456789012345678901234.5")
    assert format_price(price, 8) == "123456789012345678901234.5"
    assert format_price(price, 0) == "123456789012345678901234"
    assert format_price(price, 2, grouping=True) == "123,456,789,012,345,678,901,234.5"
