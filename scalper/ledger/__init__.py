"""Balance and position history ledger."""

from scalper.ledger.ledger import Ledger

__all__ = ["Ledger"]
