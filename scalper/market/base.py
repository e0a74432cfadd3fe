"""Base market data interface."""

from abc import ABC, abstractmethod

from scalper.models import Candle


class MarketDataSource(ABC):
    """Supplies recent bars for a single instrument."""

    @abstractmethod
    def get_candles(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        """Get the most recent bars.

        Args:
            symbol: Instrument symbol.
            interval: Bar interval (e.g. 1m).
            limit: Number of bars.

        Returns:
            Bars ordered oldest first, most recent last.

        Raises:
            httpx.HTTPError: If the data could not be fetched.
        """
        pass

    def close(self) -> None:
        """Release any connection held by the source."""
        pass
