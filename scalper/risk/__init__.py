"""Risk admission checks."""

from scalper.risk.gate import RiskGate

__all__ = ["RiskGate"]
