"""Risk-gated ledger of balance and position history."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from scalper.config import RiskConfig
from scalper.db.store import LedgerFile
from scalper.engine import PositionEngine
from scalper.models import LedgerState, Position

logger = logging.getLogger(__name__)

HOUR_WINDOW = timedelta(minutes=60)


class Ledger:
    """Owns the LedgerState and every mutation of it.

    Each mutation is applied in memory, written to the local ledger file,
    and only then reported to the ``on_change`` callback (used to trigger
    remote replication). Collateral leaves ``balance`` on open and comes
    back together with the net P&L on close.
    """

    def __init__(
        self,
        risk: RiskConfig,
        engine: PositionEngine,
        store: LedgerFile,
        on_change: Optional[Callable[[], object]] = None,
    ):
        """Initialize the ledger with default state.

        Args:
            risk: Risk settings (initial balance, loss pause thresholds).
            engine: Position engine used to settle closes.
            store: Local ledger file.
            on_change: Called after every persisted mutation.
        """
        self._risk = risk
        self._engine = engine
        self._store = store
        self.on_change = on_change
        self._state = self.default_state()

    def default_state(self, now: Optional[datetime] = None) -> LedgerState:
        """Build a fresh ledger state from the configured initial balance."""
        now = now or datetime.now(timezone.utc)
        balance = self._risk.initial_balance
        return LedgerState(
            balance=balance,
            initial_balance=balance,
            daily_start_balance=balance,
            last_reset=now,
            last_hour_reset=now,
        )

    @property
    def state(self) -> LedgerState:
        return self._state

    # ==================== Persistence ====================

    def load(self, persist: bool = True) -> bool:
        """Load state from the local file.

        A missing or corrupt file falls back to default state, which is
        written out immediately unless ``persist`` is False.

        Returns:
            True if state was loaded from disk, False if defaults are used.
        """
        state = self._store.load()
        if state is None:
            self._state = self.default_state()
            if persist:
                self.save()
            return False
        self._state = state
        return True

    def replace_state(self, state: LedgerState, persist: bool = True) -> None:
        """Adopt state pulled from the remote store, persisting it locally."""
        self._state = state
        if persist:
            self.save()

    def save(self) -> None:
        """Write the current state to the local file."""
        self._store.save(self._state)

    def _commit(self) -> None:
        self.save()
        if self.on_change is not None:
            self.on_change()

    # ==================== Queries ====================

    @property
    def open_positions(self) -> list[Position]:
        return [p for p in self._state.positions if p.status == "open"]

    @property
    def closed_positions(self) -> list[Position]:
        return [p for p in self._state.positions if p.status == "closed"]

    @property
    def available_balance(self) -> float:
        """Balance minus collateral reserved by open positions."""
        locked = sum(p.collateral for p in self.open_positions)
        return self._state.balance - locked

    @property
    def realized_pnl(self) -> float:
        """Sum of net P&L over all closed positions."""
        return sum(p.pnl or 0.0 for p in self.closed_positions)

    def get_position(self, position_id: str) -> Optional[Position]:
        return next((p for p in self._state.positions if p.id == position_id), None)

    def is_paused(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        paused_until = self._state.paused_until
        return paused_until is not None and now < paused_until

    def needs_daily_reset(self, now: Optional[datetime] = None) -> bool:
        """Whether the UTC date has changed since the last daily reset."""
        now = now or datetime.now(timezone.utc)
        return now.astimezone(timezone.utc).date() != self._state.last_reset.astimezone(timezone.utc).date()

    def stats(self) -> dict:
        """Summary statistics for status lines and the daily summary."""
        closed = self.closed_positions
        wins = sum(1 for p in closed if (p.pnl or 0) > 0)
        losses = sum(1 for p in closed if (p.pnl or 0) < 0)
        start = self._state.daily_start_balance
        return {
            "total_trades": len(closed),
            "wins": wins,
            "losses": losses,
            "win_rate": (wins / len(closed) * 100) if closed else 0.0,
            "daily_pnl": self._state.daily_pnl,
            "daily_pnl_percent": (self._state.daily_pnl / start * 100) if start else 0.0,
            "consecutive_losses": self._state.consecutive_losses,
        }

    # ==================== Mutations ====================

    def roll_hourly_window(self, now: Optional[datetime] = None) -> bool:
        """Reset the hourly trade counter once the window has elapsed.

        The counter change is kept in memory and persisted with the next
        committed mutation.

        Returns:
            True if the window was reset.
        """
        now = now or datetime.now(timezone.utc)
        if now - self._state.last_hour_reset > HOUR_WINDOW:
            self._state.trades_this_hour = 0
            self._state.last_hour_reset = now
            return True
        return False

    def open_position(self, position: Position) -> None:
        """Record a newly opened position and reserve its collateral.

        Args:
            position: An open position from PositionEngine.create.

        Raises:
            ValueError: If the position is not open or its id is already used.
        """
        if position.status != "open":
            raise ValueError(f"Cannot open position {position.id} with status {position.status}")
        if self.get_position(position.id) is not None:
            raise ValueError(f"Position id {position.id} already exists")

        self._state.positions.append(position)
        self._state.trades_this_hour += 1
        self._state.balance -= position.collateral
        self._commit()

    def close_position(
        self,
        position_id: str,
        exit_price: float,
        reason: str,
        now: Optional[datetime] = None,
    ) -> Optional[Position]:
        """Settle an open position.

        Unknown or already closed ids are a no-op, so a position's P&L is
        applied at most once.

        Args:
            position_id: Id of the position to close.
            exit_price: Exit fill price.
            reason: Exit rule tag.
            now: Close time, defaults to the current UTC time.

        Returns:
            The closed Position, or None if nothing was closed.
        """
        now = now or datetime.now(timezone.utc)
        idx = next(
            (i for i, p in enumerate(self._state.positions) if p.id == position_id),
            None,
        )
        if idx is None:
            logger.warning(f"Close requested for unknown position {position_id}")
            return None

        position = self._state.positions[idx]
        if position.status != "open":
            logger.info(f"Position {position_id} already closed, ignoring")
            return None

        closed = self._engine.close(position, exit_price, reason, now=now)
        net = closed.pnl or 0.0

        self._state.positions[idx] = closed
        self._state.balance += closed.collateral + net
        self._state.daily_pnl += net

        if net < 0:
            self._state.consecutive_losses += 1
            if self._state.consecutive_losses >= self._risk.max_consecutive_losses:
                self._state.paused_until = now + timedelta(
                    minutes=self._risk.pause_after_losses_minutes
                )
                logger.warning(
                    f"{self._state.consecutive_losses} losses in a row, "
                    f"pausing until {self._state.paused_until:%H:%M:%S} UTC"
                )
        else:
            self._state.consecutive_losses = 0

        self._commit()
        return closed

    def reset_daily(self, now: Optional[datetime] = None) -> None:
        """Start a new trading day."""
        now = now or datetime.now(timezone.utc)
        self._state.daily_start_balance = self._state.balance
        self._state.daily_pnl = 0.0
        self._state.consecutive_losses = 0
        self._state.last_reset = now
        self._commit()
