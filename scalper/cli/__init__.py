"""CLI commands for the paper scalper.

This package provides the command-line interface: running the decision
loop, inspecting the ledger and driving remote sync by hand.
"""

from scalper.cli.main import cli, main

__all__ = ["cli", "main"]
