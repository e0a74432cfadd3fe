"""Paper trading scalper with a risk-gated, replicated ledger."""

__version__ = "0.1.0"
