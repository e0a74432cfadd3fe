"""Market data sources."""

from scalper.market.base import MarketDataSource
from scalper.market.binance import BinanceClient

__all__ = ["MarketDataSource", "BinanceClient"]
