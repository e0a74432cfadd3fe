"""Position and exit decision data models."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

Side = Literal["Long", "Short"]


class Position(BaseModel):
    """A single leveraged position, open or closed.

    Closed positions carry the exit fields; they are never reopened.
    """

    id: str = Field(..., min_length=1, description="Unique position identifier")
    side: Side = Field(..., description="Position direction")
    entry_price: float = Field(..., gt=0, description="Entry price")
    entry_time: datetime = Field(..., description="Entry timestamp (UTC)")
    collateral: float = Field(..., gt=0, description="Margin posted")
    leverage: float = Field(..., gt=0, description="Notional multiplier")
    stop_loss: float = Field(..., gt=0, description="Stop-loss price level")
    take_profit: float = Field(..., gt=0, description="Take-profit price level")
    min_profit_target: float = Field(..., description="Net dollar take-profit threshold")
    max_profit_target: float = Field(..., description="Net dollar profit lock threshold")
    status: Literal["open", "closed"] = Field(default="open", description="Lifecycle status")
    exit_price: Optional[float] = Field(default=None, gt=0, description="Exit price")
    exit_time: Optional[datetime] = Field(default=None, description="Exit timestamp (UTC)")
    gross_pnl: Optional[float] = Field(default=None, description="P&L before fees")
    fees: Optional[float] = Field(default=None, ge=0, description="Round-trip fees")
    pnl: Optional[float] = Field(default=None, description="Net P&L after fees")
    reason: Optional[str] = Field(default=None, description="Exit rule tag")

    model_config = {"frozen": True}

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @property
    def size(self) -> float:
        """Notional position size (collateral x leverage)."""
        return self.collateral * self.leverage


class ExitDecision(BaseModel):
    """Outcome of evaluating an open position against the exit ladder."""

    should_close: bool = Field(..., description="Whether the position should close now")
    reason: Optional[str] = Field(default=None, description="Exit rule tag")
    exit_price: Optional[float] = Field(default=None, description="Price to close at")
    elapsed_seconds: float = Field(default=0.0, description="Seconds since entry")
    gross_pnl: float = Field(default=0.0, description="Mark-to-market P&L before fees")
    fees: float = Field(default=0.0, description="Round-trip fees")
    net_pnl: float = Field(default=0.0, description="Mark-to-market P&L after fees")

    model_config = {"frozen": True}
