"""
Tests for the Binance ticker client with mocked HTTP (no live network).

Covers request shape, exact decimal parsing, quote-suffix stripping, and the
TransportError / ApiError / DecodeError split.
"""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from crypto_ticker.core.errors import ApiError, DecodeError, TransportError
from crypto_ticker.providers.base import base_symbol, parse_price
from crypto_ticker.providers.binance import (
    BINANCE_BASE_URL,
    CONNECT_TIMEOUT_S,
    READ_TIMEOUT_S,
    BinanceTickerClient,
    build_symbols_param,
    create_default_client,
)

GET = "crypto_ticker.providers.binance.requests.get"


def _response(status_code=200, json_data=None, text="", json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = json_data
    return resp


class TestRequest:
    def test_symbols_param_format(self):
        assert build_symbols_param(["BTCUSDT", "ETHUSDT"]) == '["BTCUSDT","ETHUSDT"]'
        assert build_symbols_param([]) == "[]"

    @patch(GET)
    def test_request_shape(self, mock_get):
        mock_get.return_value = _response(json_data=[])
        BinanceTickerClient().fetch(["BTC", "ETH"], "USDT")

        args, kwargs = mock_get.call_args
        assert args[0] == f"{BINANCE_BASE_URL}/api/v3/ticker/price"
        assert kwargs["params"] == {"symbols": '["BTCUSDT","ETHUSDT"]'}
        assert kwargs["timeout"] == (CONNECT_TIMEOUT_S, READ_TIMEOUT_S) == (10.0, 10.0)

    def test_symbols_param_is_url_escaped(self):
        req = requests.Request(
            "GET",
            f"{BINANCE_BASE_URL}/api/v3/ticker/price",
            params={"symbols": build_symbols_param(["BTCUSDT"])},
        ).prepare()
        assert req.url.endswith("?symbols=%5B%22BTCUSDT%22%5D")

    @patch(GET)
    def test_custom_base_url(self, mock_get):
        mock_get.return_value = _response(json_data=[])
        BinanceTickerClient("http://localhost:9000/").fetch(["BTC"], "USDT")
        assert mock_get.call_args[0][0] == "http://localhost:9000/api/v3/ticker/price"

    def test_default_client_uses_configured_url(self, monkeypatch):
        monkeypatch.setenv("CRYPTO_TICKER_API_URL", "http://mirror.example")
        assert create_default_client().base_url == "http://mirror.example"


class TestParsing:
    @patch(GET)
    def test_exact_decimal_keyed_by_base_symbol(self, mock_get):
        mock_get.return_value = _response(
            json_data=[
                {"symbol": "BTCUSDT", "price": "108699.99000000"},
                {"symbol": "ETHUSDT", "price": "2500.10000000"},
            ]
        )
        prices = BinanceTickerClient().fetch(["BTC", "ETH"], "USDT")
        assert prices == {"BTC": Decimal("108699.99"), "ETH": Decimal("2500.1")}
        assert str(prices["BTC"]) == "108699.99000000"
        assert isinstance(prices["BTC"], Decimal)

    @patch(GET)
    def test_strips_only_the_quote_suffix(self, mock_get):
        mock_get.return_value = _response(json_data=[{"symbol": "USDCUSDT", "price": "0.99990000"}])
        assert BinanceTickerClient().fetch(["USDC"], "USDT") == {"USDC": Decimal("0.9999")}

    def test_base_symbol(self):
        assert base_symbol("BTCUSDT", "USDT") == "BTC"
        assert base_symbol("BTCFDUSD", "USDT") == "BTCFDUSD"
        assert base_symbol("USDT", "USDT") == "USDT"

    @pytest.mark.parametrize("raw", ["abc", "", "1.2.3", "NaN", "Infinity", "1_000", "108_699.99", "0x10", "1e"])
    def test_parse_price_rejects(self, raw):
        with pytest.raises(DecodeError):
            parse_price(raw, "BTC")

    def test_parse_price_trims_whitespace(self):
        assert parse_price(" 1.50 ") == Decimal("1.50")

    @pytest.mark.parametrize("raw,expected", [("0.5", "0.5"), (".5", "0.5"), ("5.", "5"), ("-1.25", "-1.25"), ("1E-8", "0.00000001")])
    def test_parse_price_accepts_plain_decimals(self, raw, expected):
        assert parse_price(raw) == Decimal(expected)


class TestErrors:
    @patch(GET, side_effect=requests.ConnectionError("refused"))
    def test_connection_error(self, _mock_get):
        with pytest.raises(TransportError, match="refused"):
            BinanceTickerClient().fetch(["BTC"], "USDT")

    @patch(GET, side_effect=requests.Timeout("read timed out"))
    def test_timeout(self, _mock_get):
        with pytest.raises(TransportError) as exc_info:
            BinanceTickerClient().fetch(["BTC"], "USDT")
        assert isinstance(exc_info.value.__cause__, requests.Timeout)

    @patch(GET)
    def test_non_200_is_api_error(self, mock_get):
        body = '{"code":-1121,"msg":"Invalid symbol."}'
        mock_get.return_value = _response(status_code=400, text=body)
        with pytest.raises(ApiError) as exc_info:
            BinanceTickerClient().fetch(["NOPE"], "USDT")
        assert exc_info.value.status_code == 400
        assert exc_info.value.body == body
        assert "HTTP 400" in str(exc_info.value)

    @patch(GET)
    def test_body_not_json(self, mock_get):
        mock_get.return_value = _response(json_error=ValueError("Expecting value"), text="<html>")
        with pytest.raises(DecodeError, match="not JSON"):
            BinanceTickerClient().fetch(["BTC"], "USDT")

    @pytest.mark.parametrize(
        "payload",
        [
            {"symbol": "BTCUSDT", "price": "1"},
            [{"symbol": "BTCUSDT"}],
            [{"price": "1"}],
            [{"symbol": "BTCUSDT", "price": 1.5}],
            [{"symbol": "BTCUSDT", "price": "not-a-number"}],
            ["BTCUSDT"],
        ],
    )
    @patch(GET)
    def test_unexpected_shape(self, mock_get, payload):
        mock_get.return_value = _response(json_data=payload)
        with pytest.raises(DecodeError):
            BinanceTickerClient().fetch(["BTC"], "USDT")
