"""Momentum signal source: ride short runs of same-direction bars."""

from typing import Optional

from scalper.config import StrategyConfig
from scalper.models import Candle, Overrides, Signal

# Bars inspected for the run count and chase check
RUN_WINDOW = 5


class MomentumDetector:
    """Detects short momentum bursts in 1m bars.

    A signal needs a run of same-direction bars, a minimum percent move
    over the last three bars, supporting volume, a last bar at least 80%
    as large as the one before it, and a total move over the last five
    bars that is not already past the chase limit.
    """

    def __init__(self, strategy: StrategyConfig):
        self._strategy = strategy

    def __call__(self, candles: list[Candle], overrides: Optional[Overrides] = None) -> Signal:
        return self.detect(candles, overrides)

    def detect(self, candles: list[Candle], overrides: Optional[Overrides] = None) -> Signal:
        """Look for a momentum entry in the latest bars.

        Args:
            candles: Bars ordered oldest first.
            overrides: Optional threshold and chase overrides.

        Returns:
            Signal; detected is False with a diagnostic reason otherwise.
        """
        cfg = self._strategy
        threshold = cfg.momentum_threshold
        max_chase = cfg.max_chase_percent
        if overrides is not None:
            threshold = overrides.momentum_threshold or threshold
            max_chase = overrides.max_chase_percent or max_chase

        if len(candles) < max(cfg.volume_lookback, RUN_WINDOW):
            return Signal(detected=False, reason="Not enough data")

        bull_count = 0
        bear_count = 0
        for c in reversed(candles[-RUN_WINDOW:]):
            if c.close > c.open:
                if bear_count:
                    break
                bull_count += 1
            elif c.close < c.open:
                if bull_count:
                    break
                bear_count += 1
            else:
                break

        last3 = candles[-3:]
        last5 = candles[-RUN_WINDOW:]
        move3 = abs(last3[-1].close - last3[0].open) / last3[0].open * 100
        move5 = abs(last5[-1].close - last5[0].open) / last5[0].open * 100

        lookback = candles[-cfg.volume_lookback:]
        avg_volume = sum(c.volume for c in lookback) / len(lookback)
        recent_volume = (last3[1].volume + last3[2].volume) / 2
        vol_ratio = recent_volume / avg_volume if avg_volume > 0 else 1.0

        current, prev = candles[-1], candles[-2]
        accelerating = abs(current.close - current.open) > abs(prev.close - prev.open) * 0.8
        too_far = move5 > max_chase

        qualifies = (
            move3 >= threshold
            and vol_ratio >= cfg.volume_multiplier
            and accelerating
            and not too_far
        )
        count = max(bull_count, bear_count)
        if qualifies and count >= cfg.consecutive_candles:
            side = "Long" if bull_count else "Short"
            color = "green" if bull_count else "red"
            strength = min(1.0, (count / RUN_WINDOW + move3 / 0.2 + vol_ratio / 2) / 3)
            return Signal(
                detected=True,
                side=side,
                strength=strength,
                reason=(
                    f"MOMENTUM {side.upper()}: {count} {color} candles, "
                    f"{move3:.3f}% move, vol {vol_ratio:.1f}x"
                ),
            )

        direction = f"{bull_count} bull" if bull_count >= bear_count else f"{bear_count} bear"
        return Signal(
            detected=False,
            reason=(
                f"No momentum ({direction}, move3: {move3:.3f}%, "
                f"vol: {vol_ratio:.1f}x, accel: {accelerating}, chase: {move5:.3f}%)"
            ),
        )
