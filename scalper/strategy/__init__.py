"""Entry signal sources."""

from scalper.strategy.momentum import MomentumDetector

__all__ = ["MomentumDetector"]
