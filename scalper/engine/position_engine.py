"""Entry parameters and the exit ladder for a single position."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from scalper.config import FeeConfig, FuturesConfig, StrategyConfig
from scalper.models import ExitDecision, Overrides, Position, Side


class PositionEngine:
    """Pure computations over positions.

    Creates positions with direction-aware stop/target levels, evaluates
    open positions against the exit ladder and produces closed copies.
    The engine never tracks status transitions; the ledger does.
    """

    STOP_LOSS = "stop-loss"
    MAX_PROFIT = "max-profit"
    TAKE_PROFIT = "take-profit"
    QUICK_PROFIT = "quick-profit"
    BREAKEVEN = "breakeven-exit"
    UNDERWATER = "underwater-cut"
    TIMEOUT_GREEN = "timeout-green"
    TIMEOUT_RED = "timeout-red"

    def __init__(
        self,
        strategy: StrategyConfig,
        futures: FuturesConfig,
        fees: FeeConfig,
    ):
        """Initialize the engine.

        Args:
            strategy: Entry level and exit ladder settings.
            futures: Leverage settings.
            fees: Fee settings.
        """
        self._strategy = strategy
        self._futures = futures
        self._fee_rate = fees.fee_rate

    @property
    def fee_rate(self) -> float:
        return self._fee_rate

    def create(
        self,
        side: Side,
        entry_price: float,
        collateral: float,
        now: Optional[datetime] = None,
        overrides: Optional[Overrides] = None,
    ) -> Position:
        """Build a new open position.

        Args:
            side: Long or Short.
            entry_price: Fill price.
            collateral: Margin to post.
            now: Entry time, defaults to the current UTC time.
            overrides: Optional advisory overrides (min profit target).

        Returns:
            A new open Position. Nothing is persisted.

        Raises:
            ValueError: If side, price or collateral is invalid.
        """
        if side not in ("Long", "Short"):
            raise ValueError(f"Invalid side: {side!r}")
        if entry_price <= 0:
            raise ValueError(f"Entry price must be positive, got {entry_price}")
        if collateral <= 0:
            raise ValueError(f"Collateral must be positive, got {collateral}")

        stop_pct = self._strategy.initial_stop_percent / 100
        target_pct = self._strategy.target_profit_percent / 100

        if side == "Long":
            stop_loss = entry_price * (1 - stop_pct)
            take_profit = entry_price * (1 + target_pct)
        else:
            stop_loss = entry_price * (1 + stop_pct)
            take_profit = entry_price * (1 - target_pct)

        min_profit = self._strategy.min_profit_dollars
        if overrides is not None and overrides.min_profit_dollars is not None:
            min_profit = overrides.min_profit_dollars

        return Position(
            id=f"POS_{uuid.uuid4().hex[:12].upper()}",
            side=side,
            entry_price=entry_price,
            entry_time=now or datetime.now(timezone.utc),
            collateral=collateral,
            leverage=self._futures.leverage,
            stop_loss=stop_loss,
            take_profit=take_profit,
            min_profit_target=min_profit,
            max_profit_target=self._strategy.max_profit_dollars,
        )

    def pnl(self, position: Position, price: float) -> tuple[float, float, float]:
        """Compute (gross, fees, net) P&L for a position marked at a price.

        This is the only P&L formula; evaluate and close both use it.
        """
        if position.side == "Long":
            move = (price - position.entry_price) / position.entry_price
        else:
            move = (position.entry_price - price) / position.entry_price
        size = position.size
        gross = size * move
        fees = size * self._fee_rate * 2
        return gross, fees, gross - fees

    def _stop_hit(self, position: Position, price: float) -> bool:
        if position.side == "Long":
            return price <= position.stop_loss
        return price >= position.stop_loss

    def evaluate(
        self,
        position: Position,
        current_price: float,
        now: Optional[datetime] = None,
        overrides: Optional[Overrides] = None,
    ) -> ExitDecision:
        """Run the exit ladder for an open position.

        Rules are checked in priority order and the first match wins:
        stop-loss, max-profit, take-profit, quick-profit, breakeven-exit,
        underwater-cut, then timeout.

        Args:
            position: The open position.
            current_price: Latest price.
            now: Evaluation time, defaults to the current UTC time.
            overrides: Optional advisory overrides for the time based rules.

        Returns:
            ExitDecision; should_close is False when the position holds.
        """
        now = now or datetime.now(timezone.utc)
        elapsed = (now - position.entry_time).total_seconds()
        gross, fees, net = self.pnl(position, current_price)

        strategy = self._strategy
        quick_exit_seconds = strategy.quick_exit_seconds
        quick_grab_dollars = strategy.quick_grab_dollars
        max_trade_seconds = strategy.max_trade_seconds
        if overrides is not None:
            if overrides.quick_exit_seconds is not None:
                quick_exit_seconds = overrides.quick_exit_seconds
            if overrides.quick_grab_dollars is not None:
                quick_grab_dollars = overrides.quick_grab_dollars
            if overrides.max_trade_seconds is not None:
                max_trade_seconds = overrides.max_trade_seconds

        if self._stop_hit(position, current_price):
            reason = self.STOP_LOSS
        elif net >= position.max_profit_target:
            reason = self.MAX_PROFIT
        elif net >= position.min_profit_target:
            reason = self.TAKE_PROFIT
        elif elapsed >= quick_exit_seconds and net >= quick_grab_dollars:
            reason = self.QUICK_PROFIT
        elif elapsed >= strategy.breakeven_seconds and net >= 0:
            reason = self.BREAKEVEN
        elif elapsed >= strategy.underwater_cut_seconds and net < strategy.underwater_min_loss:
            reason = self.UNDERWATER
        elif elapsed >= max_trade_seconds:
            reason = self.TIMEOUT_GREEN if net >= 0 else self.TIMEOUT_RED
        else:
            reason = None

        return ExitDecision(
            should_close=reason is not None,
            reason=reason,
            exit_price=current_price if reason is not None else None,
            elapsed_seconds=elapsed,
            gross_pnl=gross,
            fees=fees,
            net_pnl=net,
        )

    def close(
        self,
        position: Position,
        exit_price: float,
        reason: str,
        now: Optional[datetime] = None,
    ) -> Position:
        """Return a closed copy of a position with final P&L.

        Args:
            position: The position to close.
            exit_price: Fill price for the exit.
            reason: Exit rule tag.
            now: Exit time, defaults to the current UTC time.

        Returns:
            A new Position with status closed and exit fields set.
        """
        gross, fees, net = self.pnl(position, exit_price)
        return position.model_copy(
            update={
                "status": "closed",
                "exit_price": exit_price,
                "exit_time": now or datetime.now(timezone.utc),
                "gross_pnl": gross,
                "fees": fees,
                "pnl": net,
                "reason": reason,
            }
        )
