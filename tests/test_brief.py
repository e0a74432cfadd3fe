"""Tests for the market brief reader and override rules.

**Feature: paper-scalper**
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import pytest

from scalper.advisory import BriefReader, MarketBrief, overrides_from_brief
from scalper.sync import InMemoryVersionedStore, VersionedObject


NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def brief_payload(
    regime: str = "trending_bullish",
    active: bool = True,
    age_minutes: float = 5,
    risk_events: int = 0,
    params: Optional[dict] = None,
) -> dict:
    return {
        "timestamp": (NOW - timedelta(minutes=age_minutes)).isoformat(),
        "regime": regime,
        "regimeConfidence": 0.8,
        "regimeReason": "higher highs",
        "news": {"sentiment": "neutral", "riskEventCount": risk_events},
        "recommendations": {
            "momentum_scalper": {
                "active": active,
                "reason": "conditions look fine" if active else "chop, stand aside",
                "params": params,
            }
        },
    }


def parse(payload: dict) -> MarketBrief:
    return MarketBrief.model_validate(payload)


class CountingStore(InMemoryVersionedStore):
    """Memory store that counts reads."""

    def __init__(self, content=None):
        super().__init__(content)
        self.gets = 0

    def get(self) -> Optional[VersionedObject]:
        self.gets += 1
        return super().get()


class FailingStore(InMemoryVersionedStore):
    def get(self) -> Optional[VersionedObject]:
        raise httpx.ReadTimeout("timed out")


# ============================================================================
# Override rules
# ============================================================================

class TestOverridesFromBrief:
    """Regime to override mapping."""

    @pytest.mark.parametrize("regime,side", [
        ("trending_bullish", "Long"),
        ("trending_bearish", "Short"),
    ])
    def test_trending_prefers_side(self, regime, side):
        overrides = overrides_from_brief(parse(brief_payload(regime)), NOW)

        assert overrides.trading_enabled is True
        assert overrides.preferred_side == side
        assert overrides.max_chase_percent == 0.35
        assert overrides.min_profit_dollars == 20

    def test_high_vol_chop_shortens_holds(self):
        overrides = overrides_from_brief(parse(brief_payload("high_vol_chop")), NOW)

        assert overrides.preferred_side is None
        assert overrides.max_trade_seconds == 120
        assert overrides.quick_exit_seconds == 20

    @pytest.mark.parametrize("regime", ["ranging", "low_vol_squeeze"])
    def test_quiet_regimes_raise_threshold(self, regime):
        overrides = overrides_from_brief(parse(brief_payload(regime)), NOW)

        assert overrides.momentum_threshold == 0.10
        assert overrides.max_trade_seconds == 90

    def test_inactive_disables_trading(self):
        overrides = overrides_from_brief(parse(brief_payload(active=False)), NOW)

        assert overrides.trading_enabled is False
        assert overrides.reason == "chop, stand aside"

    def test_stale_brief_uses_defaults(self):
        overrides = overrides_from_brief(parse(brief_payload(active=False, age_minutes=45)), NOW)

        assert overrides.trading_enabled is True
        assert overrides.preferred_side is None
        assert "stale" in overrides.reason

    def test_recommended_params_applied(self):
        payload = brief_payload("unknown", params={"momentumThreshold": 0.05, "maxTradeSeconds": 150})
        overrides = overrides_from_brief(parse(payload), NOW)

        assert overrides.momentum_threshold == 0.05
        assert overrides.max_trade_seconds == 150

    def test_news_risk_tightens(self):
        overrides = overrides_from_brief(parse(brief_payload("unknown", risk_events=3)), NOW)

        assert overrides.max_trade_seconds == 120
        assert overrides.momentum_threshold == 0.08

    def test_millisecond_timestamp(self):
        payload = brief_payload()
        payload["timestamp"] = int((NOW - timedelta(minutes=1)).timestamp() * 1000)
        brief = parse(payload)

        assert brief.timestamp == NOW - timedelta(minutes=1)

    def test_naive_timestamp_is_utc(self):
        payload = brief_payload()
        payload["timestamp"] = "2026-03-02T11:55:00"

        assert parse(payload).timestamp == NOW - timedelta(minutes=5)


# ============================================================================
# Reader
# ============================================================================

class TestBriefReader:
    """Caching and failure handling of the brief reader."""

    def test_reads_and_caches(self):
        store = CountingStore(json.dumps(brief_payload()).encode())
        reader = BriefReader(store)

        first = reader.get_overrides(NOW)
        reader.get_overrides(NOW + timedelta(minutes=1))

        assert first.preferred_side == "Long"
        assert store.gets == 1
        assert reader.brief.regime == "trending_bullish"

    def test_refreshes_after_interval(self):
        store = CountingStore(json.dumps(brief_payload()).encode())
        reader = BriefReader(store)

        reader.get_overrides(NOW)
        reader.get_overrides(NOW + timedelta(minutes=6))

        assert store.gets == 2

    def test_missing_brief_uses_defaults(self):
        overrides = BriefReader(InMemoryVersionedStore()).get_overrides(NOW)

        assert overrides.trading_enabled is True
        assert overrides.preferred_side is None

    def test_malformed_brief_uses_defaults(self):
        reader = BriefReader(InMemoryVersionedStore(b'{"regime": 5}'))
        overrides = reader.get_overrides(NOW)

        assert overrides.trading_enabled is True
        assert reader.brief is None

    def test_fetch_failure_uses_defaults(self):
        overrides = BriefReader(FailingStore()).get_overrides(NOW)
        assert overrides.trading_enabled is True
