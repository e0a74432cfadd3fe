"""Data models for the paper scalper."""

from scalper.models.candle import Candle
from scalper.models.signal import Overrides, Signal
from scalper.models.position import ExitDecision, Position, Side
from scalper.models.ledger import LedgerState, RiskCheck
from scalper.models.tick import TickResult

__all__ = [
    "Candle",
    "Signal",
    "Overrides",
    "Position",
    "Side",
    "ExitDecision",
    "LedgerState",
    "RiskCheck",
    "TickResult",
]
