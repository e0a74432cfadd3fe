"""Signal and override models consumed by the decision loop."""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class Signal(BaseModel):
    """Entry signal produced by a strategy collaborator."""

    detected: bool = Field(..., description="Whether an entry was detected")
    side: Optional[Literal["Long", "Short"]] = Field(default=None, description="Entry side")
    strength: Optional[float] = Field(default=None, description="Signal strength, informational only")
    reason: str = Field(default="", description="Human readable explanation")

    model_config = {"frozen": True}


class Overrides(BaseModel):
    """Parameter overrides proposed by the advisory collaborator.

    Unset fields mean "use the configured value".
    """

    trading_enabled: bool = Field(default=True, description="Allow new entries")
    reason: str = Field(default="", description="Why these overrides apply")
    preferred_side: Optional[Literal["Long", "Short"]] = Field(
        default=None, description="Ignore signals on the other side"
    )
    momentum_threshold: Optional[float] = Field(default=None, gt=0)
    max_chase_percent: Optional[float] = Field(default=None, gt=0)
    max_trade_seconds: Optional[float] = Field(default=None, gt=0)
    quick_exit_seconds: Optional[float] = Field(default=None, gt=0)
    quick_grab_dollars: Optional[float] = Field(default=None, ge=0)
    min_profit_dollars: Optional[float] = Field(default=None, ge=0)

    model_config = {"frozen": True}
