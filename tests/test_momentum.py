"""Tests for the momentum signal source.

**Feature: paper-scalper**
"""

from datetime import datetime, timedelta, timezone

import pytest

from scalper.config import StrategyConfig
from scalper.models import Candle, Overrides
from scalper.strategy import MomentumDetector


START = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
BASE = 70000.0


def _bar(i: int, open_: float, close: float, volume: float = 10.0) -> Candle:
    return Candle(
        time=START + timedelta(minutes=i),
        open=open_,
        high=max(open_, close),
        low=min(open_, close),
        close=close,
        volume=volume,
    )


def make_candles(steps: list[float], flat: int = 10) -> list[Candle]:
    """Flat bars at BASE followed by one bar per step (close - open)."""
    candles = [_bar(i, BASE, BASE) for i in range(flat)]
    price = BASE
    for step in steps:
        candles.append(_bar(len(candles), price, price + step))
        price += step
    return candles


@pytest.fixture
def detector():
    return MomentumDetector(StrategyConfig())


class TestMomentumDetector:
    """
    **Feature: paper-scalper, Property 10: Momentum Entry Signal**

    A run of same-direction bars with enough move, volume and acceleration
    yields a signal on that side; anything else yields a diagnostic reason.
    """

    def test_green_run_signals_long(self, detector):
        signal = detector(make_candles([15, 15, 15]))

        assert signal.detected is True
        assert signal.side == "Long"
        assert 0 < signal.strength <= 1
        assert signal.reason.startswith("MOMENTUM LONG: 3 green candles")

    def test_red_run_signals_short(self, detector):
        signal = detector(make_candles([-15, -15, -15]))

        assert signal.detected is True
        assert signal.side == "Short"

    def test_not_enough_data(self, detector):
        signal = detector(make_candles([15, 15, 15], flat=5)[:9])

        assert signal.detected is False
        assert signal.reason == "Not enough data"

    def test_flat_market(self, detector):
        signal = detector(make_candles([]))

        assert signal.detected is False
        assert signal.reason.startswith("No momentum")

    def test_chasing_rejected(self, detector):
        # 0.3% over the last five bars is past the 0.25% chase limit
        signal = detector(make_candles([70, 70, 70]))
        assert signal.detected is False

    def test_decelerating_run_rejected(self, detector):
        signal = detector(make_candles([20, 20, 5]))
        assert signal.detected is False
        assert "accel: False" in signal.reason

    def test_mixed_bars_break_run(self, detector):
        signal = detector(make_candles([15, -15, 20]))
        assert signal.detected is False

    def test_weak_volume_rejected(self, detector):
        candles = make_candles([15, 15, 15])
        candles[-1] = candles[-1].model_copy(update={"volume": 1.0})
        candles[-2] = candles[-2].model_copy(update={"volume": 1.0})

        assert detector(candles).detected is False

    def test_threshold_override(self, detector):
        signal = detector(make_candles([15, 15, 15]), Overrides(momentum_threshold=0.1))
        assert signal.detected is False

    def test_chase_override(self, detector):
        signal = detector(make_candles([15, 15, 15]), Overrides(max_chase_percent=0.05))
        assert signal.detected is False
