"""Tests for the Binance klines client.

**Feature: paper-scalper**
"""

from datetime import datetime, timezone

import httpx
import pytest

from scalper.market import BinanceClient
from scalper.market.binance import normalize_klines


ROWS = [
    [1772452800000, "70000.00", "70020.00", "69990.00", "70015.00", "12.5", 1772452859999, "0", 10],
    [1772452860000, "70015.00", "70040.00", "70010.00", "70030.00", "8.25", 1772452919999, "0", 8],
]


def _client(handler) -> BinanceClient:
    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="https://data-api.binance.vision")
    return BinanceClient(client=http)


class TestNormalizeKlines:
    def test_rows_to_candles(self):
        candles = normalize_klines(ROWS)

        assert len(candles) == 2
        assert candles[0].time == datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        assert candles[0].open == 70000.0
        assert candles[1].close == 70030.0
        assert candles[1].volume == 8.25


class TestBinanceClient:
    def test_get_candles(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["path"] = request.url.path
            return httpx.Response(200, json=ROWS)

        candles = _client(handler).get_candles("BTCUSDT", "1m", 2)

        assert seen["path"] == "/api/v3/klines"
        assert seen["params"] == {"symbol": "BTCUSDT", "interval": "1m", "limit": "2"}
        assert [c.close for c in candles] == [70015.0, 70030.0]

    def test_http_error_propagates(self):
        client = _client(lambda request: httpx.Response(429, json={"msg": "slow down"}))
        with pytest.raises(httpx.HTTPStatusError):
            client.get_candles("BTCUSDT", "1m", 2)
