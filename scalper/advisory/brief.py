"""Market brief reader: turns a research agent's regime brief into overrides.

The brief is a JSON document published by a separate research process.
It is read through a VersionedStore, cached, and mapped to parameter
overrides with plain rules. A missing or stale brief means "trade with
defaults"; an unreadable brief is ignored.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from scalper.models import Overrides
from scalper.sync.base import VersionedStore

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = timedelta(minutes=5)
STALE_AFTER = timedelta(minutes=30)

_BRIEF_CONFIG = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


class ScalperParams(BaseModel):
    momentum_threshold: Optional[float] = Field(default=None, gt=0)
    max_trade_seconds: Optional[float] = Field(default=None, gt=0)

    model_config = _BRIEF_CONFIG


class ScalperRecommendation(BaseModel):
    active: bool = Field(...)
    reason: str = Field(default="")
    params: Optional[ScalperParams] = Field(default=None)

    model_config = _BRIEF_CONFIG


class Recommendations(BaseModel):
    momentum_scalper: ScalperRecommendation = Field(..., alias="momentum_scalper")

    model_config = _BRIEF_CONFIG


class NewsSummary(BaseModel):
    sentiment: str = Field(default="neutral")
    risk_event_count: int = Field(default=0, ge=0)

    model_config = _BRIEF_CONFIG


class MarketBrief(BaseModel):
    """Regime brief as published by the research agent."""

    timestamp: datetime = Field(..., description="When the brief was generated")
    regime: str = Field(..., min_length=1, description="Market regime label")
    regime_confidence: float = Field(default=0.0, ge=0, le=1)
    regime_reason: str = Field(default="")
    news: NewsSummary = Field(default_factory=NewsSummary)
    recommendations: Recommendations = Field(...)

    model_config = _BRIEF_CONFIG

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def overrides_from_brief(brief: MarketBrief, now: datetime) -> Overrides:
    """Map a brief to scalper overrides.

    Args:
        brief: Parsed market brief.
        now: Current time, used for the staleness check.

    Returns:
        Overrides for this tick.
    """
    if now - brief.timestamp > STALE_AFTER:
        return Overrides(reason="Brief stale (>30min), using defaults")

    rec = brief.recommendations.momentum_scalper
    if not rec.active:
        return Overrides(trading_enabled=False, reason=rec.reason or "Research agent says sit out")

    values: dict = {"trading_enabled": True, "reason": rec.reason}
    if rec.params is not None:
        if rec.params.momentum_threshold:
            values["momentum_threshold"] = rec.params.momentum_threshold
        if rec.params.max_trade_seconds:
            values["max_trade_seconds"] = rec.params.max_trade_seconds

    regime = brief.regime
    if regime == "trending_bullish":
        values.update(preferred_side="Long", max_chase_percent=0.35, min_profit_dollars=20)
    elif regime == "trending_bearish":
        values.update(preferred_side="Short", max_chase_percent=0.35, min_profit_dollars=20)
    elif regime == "high_vol_chop":
        values.update(
            preferred_side=None,
            max_trade_seconds=120,
            quick_exit_seconds=20,
            quick_grab_dollars=8,
            max_chase_percent=0.20,
        )
    elif regime in ("ranging", "low_vol_squeeze"):
        values.update(momentum_threshold=0.10, max_chase_percent=0.15, max_trade_seconds=90)

    # Heavy news flow tightens holds and thresholds
    if brief.news.risk_event_count >= 3:
        values["max_trade_seconds"] = min(values.get("max_trade_seconds") or 150, 120)
        values["momentum_threshold"] = max(values.get("momentum_threshold") or 0.06, 0.08)

    return Overrides(**values)


class BriefReader:
    """Caches the latest market brief and produces overrides from it."""

    def __init__(self, store: VersionedStore, refresh_interval: timedelta = REFRESH_INTERVAL):
        """Initialize the reader.

        Args:
            store: Store holding the brief document.
            refresh_interval: Minimum time between fetches.
        """
        self._store = store
        self._refresh_interval = refresh_interval
        self._brief: Optional[MarketBrief] = None
        self._last_fetch: Optional[datetime] = None

    def __call__(self, now: Optional[datetime] = None) -> Overrides:
        return self.get_overrides(now)

    @property
    def brief(self) -> Optional[MarketBrief]:
        return self._brief

    def close(self) -> None:
        self._store.close()

    def _fetch(self) -> Optional[MarketBrief]:
        try:
            obj = self._store.get()
        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.warning(f"Brief fetch failed: {e}")
            return None
        if obj is None:
            return None
        try:
            return MarketBrief.model_validate_json(obj.content)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed market brief: {e}")
            return None

    def refresh(self, now: Optional[datetime] = None) -> Optional[MarketBrief]:
        """Fetch a new brief if the cache is empty or due for refresh."""
        now = now or datetime.now(timezone.utc)
        due = self._last_fetch is None or now - self._last_fetch > self._refresh_interval
        if self._brief is not None and not due:
            return self._brief

        fresh = self._fetch()
        if fresh is not None:
            if self._brief is None or self._brief.regime != fresh.regime:
                logger.info(
                    f"REGIME: {fresh.regime.upper()} ({fresh.regime_confidence * 100:.0f}%) "
                    f"{fresh.regime_reason}"
                )
            self._brief = fresh
            self._last_fetch = now
        return self._brief

    def get_overrides(self, now: Optional[datetime] = None) -> Overrides:
        """Current overrides, defaulting to normal trading without a brief."""
        now = now or datetime.now(timezone.utc)
        brief = self.refresh(now)
        if brief is None:
            return Overrides(reason="No market brief available, using defaults")
        return overrides_from_brief(brief, now)
