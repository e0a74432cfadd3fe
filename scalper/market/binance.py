"""Binance public klines client."""

from datetime import datetime, timezone
from typing import Optional

import httpx

from scalper.market.base import MarketDataSource
from scalper.models import Candle


def normalize_klines(raw_klines: list[list]) -> list[Candle]:
    """Convert raw Binance kline rows into candles.

    Rows are ``[open_time_ms, open, high, low, close, volume, ...]`` with
    prices as strings.
    """
    return [
        Candle(
            time=datetime.fromtimestamp(row[0] / 1000, tz=timezone.utc),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )
        for row in raw_klines
    ]


class BinanceClient(MarketDataSource):
    """Fetches bars from the Binance REST klines endpoint."""

    BASE_URL = "https://data-api.binance.vision"

    def __init__(self, base_url: str = BASE_URL, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(base_url=base_url, timeout=10.0)

    def get_candles(self, symbol: str, interval: str, limit: int = 30) -> list[Candle]:
        response = self._client.get(
            "/api/v3/klines",
            params={"symbol": symbol, "interval": interval, "limit": limit},
        )
        response.raise_for_status()
        return normalize_klines(response.json())

    def close(self) -> None:
        self._client.close()
