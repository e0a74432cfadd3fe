"""Candle (OHLCV) data model."""

from datetime import datetime
from pydantic import BaseModel, Field


class Candle(BaseModel):
    """Represents a single OHLCV bar."""

    time: datetime = Field(..., description="Bar open time")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="High price")
    low: float = Field(..., ge=0, description="Low price")
    close: float = Field(..., ge=0, description="Closing price")
    volume: float = Field(..., ge=0, description="Traded volume")

    model_config = {"frozen": True}
