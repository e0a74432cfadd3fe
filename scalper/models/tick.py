"""Decision loop tick result model."""

from typing import Optional
from pydantic import BaseModel, Field

from scalper.models.position import Position


class TickResult(BaseModel):
    """Summary of what a single decision loop tick did."""

    tick: int = Field(..., ge=0, description="Tick sequence number")
    price: Optional[float] = Field(default=None, description="Last close used for decisions")
    closed: list[Position] = Field(default_factory=list, description="Positions closed this tick")
    opened: Optional[Position] = Field(default=None, description="Position opened this tick")
    skipped: Optional[str] = Field(default=None, description="Why no entry was attempted")

    model_config = {"frozen": True}
