"""Position lifecycle computations."""

from scalper.engine.position_engine import PositionEngine

__all__ = ["PositionEngine"]
