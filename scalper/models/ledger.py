"""Ledger state and risk check data models."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from scalper.models.position import Position


class LedgerState(BaseModel):
    """Persisted balance and position history.

    This is the single record written locally after every mutation and
    replicated to the remote versioned store.
    """

    balance: float = Field(..., description="Cash balance, open collateral excluded")
    initial_balance: float = Field(..., gt=0, description="Starting balance reference")
    daily_start_balance: float = Field(..., description="Balance at the last daily reset")
    daily_pnl: float = Field(default=0.0, description="Net P&L since the last daily reset")
    consecutive_losses: int = Field(default=0, ge=0, description="Losing closes in a row")
    positions: list[Position] = Field(default_factory=list, description="All positions, oldest first")
    last_reset: datetime = Field(..., description="Last daily reset (UTC)")
    trades_this_hour: int = Field(default=0, ge=0, description="Entries in the hourly window")
    last_hour_reset: datetime = Field(..., description="Start of the hourly window (UTC)")
    paused_until: Optional[datetime] = Field(default=None, description="Risk pause expiry (UTC)")


class RiskCheck(BaseModel):
    """Result of asking the risk gate whether a position may open."""

    allowed: bool = Field(..., description="Whether a new position may open")
    reason: Optional[str] = Field(default=None, description="Why the entry was refused")

    model_config = {"frozen": True}
