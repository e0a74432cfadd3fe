"""Tests for the risk gate.

**Feature: paper-scalper**
"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from scalper.config import FeeConfig, FuturesConfig, RiskConfig, StrategyConfig
from scalper.db.store import LedgerFile
from scalper.engine import PositionEngine
from scalper.ledger import Ledger
from scalper.risk import RiskGate


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def make(directory: Path, max_positions: int = 1, **risk_kwargs) -> tuple[Ledger, RiskGate]:
    risk = RiskConfig(initial_balance=2000, **risk_kwargs)
    futures = FuturesConfig(leverage=75, max_positions=max_positions)
    engine = PositionEngine(StrategyConfig(), futures, FeeConfig())
    ledger = Ledger(risk, engine, LedgerFile(directory / "ledger.json"))
    ledger.replace_state(ledger.default_state(NOW))
    return ledger, RiskGate(risk, futures)


def open_long(ledger: Ledger, when: datetime = NOW):
    position = ledger._engine.create("Long", 70000.0, 500, now=when)
    ledger.open_position(position)
    return position


class TestGateOrder:
    """
    **Feature: paper-scalper, Property 7: Risk Gate Order**

    Checks short-circuit in order: pause, positions, daily loss, hourly
    trades, available balance.
    """

    def test_fresh_ledger_allowed(self, temp_dir):
        ledger, gate = make(temp_dir)
        check = gate.can_open_position(ledger, NOW)

        assert check.allowed is True
        assert check.reason is None

    def test_pause_reported_first(self, temp_dir):
        ledger, gate = make(temp_dir)
        open_long(ledger)
        ledger.state.paused_until = NOW + timedelta(minutes=5)
        ledger.state.daily_pnl = -500

        check = gate.can_open_position(ledger, NOW)
        assert check.allowed is False
        assert check.reason.startswith("Paused until")

    def test_expired_pause_ignored(self, temp_dir):
        ledger, gate = make(temp_dir)
        ledger.state.paused_until = NOW - timedelta(seconds=1)

        assert gate.can_open_position(ledger, NOW).allowed is True

    def test_max_positions(self, temp_dir):
        ledger, gate = make(temp_dir)
        open_long(ledger)
        ledger.state.daily_pnl = -500

        check = gate.can_open_position(ledger, NOW)
        assert check.allowed is False
        assert check.reason == "Max 1 positions open"

    def test_daily_loss_cap(self, temp_dir):
        ledger, gate = make(temp_dir, max_daily_loss_dollars=100)
        ledger.state.daily_pnl = -100
        ledger.state.trades_this_hour = 99

        check = gate.can_open_position(ledger, NOW)
        assert check.allowed is False
        assert check.reason.startswith("Daily loss limit hit")

    def test_hourly_trade_cap(self, temp_dir):
        ledger, gate = make(temp_dir, max_trades_per_hour=6)
        ledger.state.trades_this_hour = 6

        check = gate.can_open_position(ledger, NOW + timedelta(minutes=30))
        assert check.allowed is False
        assert check.reason == "Max 6 trades/hour reached"

    def test_hourly_cap_clears_after_window(self, temp_dir):
        ledger, gate = make(temp_dir, max_trades_per_hour=6)
        ledger.state.trades_this_hour = 6
        later = NOW + timedelta(minutes=61)

        assert gate.can_open_position(ledger, later).allowed is True
        assert ledger.state.trades_this_hour == 0
        assert ledger.state.last_hour_reset == later

    def test_insufficient_available_balance(self, temp_dir):
        ledger, gate = make(temp_dir, max_positions=3, risk_per_trade=500)
        open_long(ledger)
        open_long(ledger)

        # balance 1000, two open collaterals reserved -> nothing available
        check = gate.can_open_position(ledger, NOW)
        assert check.allowed is False
        assert check.reason.startswith("Insufficient balance")


class TestRiskMonotonicity:
    """
    **Feature: paper-scalper, Property 8: Daily Loss Cap Is Sticky**

    *For any* later time on the same day, once the daily cap is hit the
    gate stays closed until the daily reset runs.
    """

    @given(
        offsets=st.lists(st.integers(min_value=0, max_value=14 * 60), min_size=1, max_size=20),
    )
    @settings(max_examples=50, deadline=None)
    def test_cap_holds_until_reset(self, offsets):
        with tempfile.TemporaryDirectory() as tmpdir:
            ledger, gate = make(Path(tmpdir), max_daily_loss_dollars=100)
            for price in (69900, 69900):
                position = open_long(ledger)
                ledger.close_position(position.id, price, "stop-loss", now=NOW)

            assert abs(ledger.state.daily_pnl) >= 100

            for minutes in sorted(offsets):
                check = gate.can_open_position(ledger, NOW + timedelta(minutes=minutes))
                assert check.allowed is False

            ledger.reset_daily(NOW + timedelta(minutes=max(offsets)))
            ledger.state.paused_until = None
            assert gate.can_open_position(ledger, NOW + timedelta(minutes=max(offsets))).allowed is True
