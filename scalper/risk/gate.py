"""Admission checks for opening new positions."""

from datetime import datetime, timezone
from typing import Optional

from scalper.config import FuturesConfig, RiskConfig
from scalper.ledger import Ledger
from scalper.models import RiskCheck


class RiskGate:
    """Decides whether the ledger may take on a new position.

    Checks run in a fixed order and stop at the first failure: pause
    window, open position count, daily loss cap, hourly trade cap,
    available balance.
    """

    def __init__(self, risk: RiskConfig, futures: FuturesConfig):
        self._risk = risk
        self._futures = futures

    def can_open_position(self, ledger: Ledger, now: Optional[datetime] = None) -> RiskCheck:
        """Check every risk limit against the current ledger state.

        The hourly trade counter is rolled over first if its window has
        elapsed; nothing else is modified.

        Args:
            ledger: Ledger to inspect.
            now: Check time, defaults to the current UTC time.

        Returns:
            RiskCheck with allowed=False and a reason on the first failed limit.
        """
        now = now or datetime.now(timezone.utc)
        state = ledger.state
        risk = self._risk

        if ledger.is_paused(now):
            return RiskCheck(
                allowed=False,
                reason=f"Paused until {state.paused_until:%H:%M:%S} UTC",
            )

        if len(ledger.open_positions) >= self._futures.max_positions:
            return RiskCheck(
                allowed=False,
                reason=f"Max {self._futures.max_positions} positions open",
            )

        if abs(state.daily_pnl) >= risk.max_daily_loss_dollars:
            return RiskCheck(
                allowed=False,
                reason=f"Daily loss limit hit (${state.daily_pnl:.2f})",
            )

        ledger.roll_hourly_window(now)
        if state.trades_this_hour >= risk.max_trades_per_hour:
            return RiskCheck(
                allowed=False,
                reason=f"Max {risk.max_trades_per_hour} trades/hour reached",
            )

        available = ledger.available_balance
        if available < risk.risk_per_trade:
            return RiskCheck(
                allowed=False,
                reason=f"Insufficient balance (${available:.2f})",
            )

        return RiskCheck(allowed=True)
