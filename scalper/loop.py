"""Decision loop: one sequential tick per polling interval.

Each tick manages exits before it considers entries:

    bars + overrides -> evaluate open positions -> close triggered ones
    -> risk gate -> signal -> open new position

Every ledger mutation is persisted locally before replication is
attempted, so a slow or failing remote never leaves local state half
applied.
"""

import logging
import signal
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from scalper.config import AppConfig
from scalper.db.store import LedgerFile
from scalper.engine import PositionEngine
from scalper.ledger import Ledger
from scalper.market import BinanceClient, MarketDataSource
from scalper.models import Candle, Overrides, Position, Signal, TickResult
from scalper.risk import RiskGate
from scalper.sync import LedgerReplicator

logger = logging.getLogger(__name__)

SignalSource = Callable[[list[Candle], Optional[Overrides]], Any]
OverrideSource = Callable[[datetime], Any]


class LoopContext(BaseModel):
    """Mutable per-loop counters owned by the caller."""

    tick_count: int = Field(default=0, ge=0)
    last_signal_time: Optional[datetime] = Field(default=None)
    last_sync_time: Optional[datetime] = Field(default=None)
    running: bool = Field(default=True)


class DecisionLoop:
    """Drives the position engine, risk gate, ledger and replication."""

    def __init__(
        self,
        config: AppConfig,
        ledger: Ledger,
        engine: PositionEngine,
        gate: RiskGate,
        market: MarketDataSource,
        signal_source: SignalSource,
        override_source: Optional[OverrideSource] = None,
        replicator: Optional[LedgerReplicator] = None,
        context: Optional[LoopContext] = None,
    ):
        """Initialize the loop.

        Args:
            config: Application configuration.
            ledger: Ledger to drive.
            engine: Position engine.
            gate: Risk gate.
            market: Bar source.
            signal_source: Callable returning a Signal for the latest bars.
            override_source: Optional callable returning Overrides for a time.
            replicator: Optional remote replicator; when set it is wired to
                the ledger's change callback.
            context: Optional loop counters, a fresh context by default.
        """
        self.config = config
        self.ledger = ledger
        self.engine = engine
        self.gate = gate
        self.market = market
        self.signal_source = signal_source
        self.override_source = override_source
        self.replicator = replicator
        self.context = context or LoopContext()
        self._stop = threading.Event()

        if replicator is not None:
            ledger.on_change = replicator.push

    # ==================== Lifecycle ====================

    def start(self, persist: bool = True) -> None:
        """Restore ledger state: remote first, then the local file.

        Args:
            persist: Write the restored state to the local file. Read-only
                callers pass False so nothing is created on disk.
        """
        if self.replicator is not None:
            pulled = self.replicator.restore(persist=persist)
        else:
            self.ledger.load(persist=persist)
            pulled = False
        source = "remote" if pulled else "local"
        logger.info(f"Loaded {source} ledger (balance: ${self.ledger.state.balance:.2f})")

    def stop(self) -> None:
        """Ask the run loop to exit after the current tick."""
        self.context.running = False
        self._stop.set()

    def shutdown(self) -> None:
        """Final forced replication. Open positions stay open."""
        if self.replicator is not None:
            self.replicator.push()
            logger.info("Final ledger push done")
        open_count = len(self.ledger.open_positions)
        if open_count:
            logger.info(f"{open_count} open position(s) left for the next start")

    def close(self) -> None:
        """Close the HTTP clients held by the collaborators."""
        self.market.close()
        if self.replicator is not None:
            self.replicator.close()
        close_source = getattr(self.override_source, "close", None)
        if callable(close_source):
            close_source()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def _handler(signum, frame):
            logger.info(f"{signal.Signals(signum).name} received, shutting down...")
            self.stop()

        signal.signal(signal.SIGTERM, _handler)
        signal.signal(signal.SIGINT, _handler)

    def run(self, once: bool = False) -> None:
        """Restore state and tick until stopped.

        Args:
            once: Run a single tick and exit.
        """
        cfg = self.config
        logger.info(
            f"Scalper starting: {cfg.market.symbol} {cfg.futures.leverage:g}x, "
            f"scan every {cfg.loop.scan_interval_seconds:g}s, "
            f"fee {cfg.fees.fee_rate * 100:g}% per side"
        )
        self.start()
        self._install_signal_handlers()

        try:
            while self.context.running:
                try:
                    self.tick()
                except Exception:
                    logger.exception("Tick failed")
                self.sync_if_due()
                if once:
                    break
                self._stop.wait(cfg.loop.scan_interval_seconds)
        finally:
            self.shutdown()
            self.close()

    def sync_if_due(self, now: Optional[datetime] = None) -> bool:
        """Periodic push, independent of ledger mutations."""
        if self.replicator is None:
            return False
        now = now or datetime.now(timezone.utc)
        last = self.context.last_sync_time
        interval = timedelta(seconds=self.config.loop.sync_interval_seconds)
        if last is not None and now - last < interval:
            return False
        self.context.last_sync_time = now
        return self.replicator.push()

    # ==================== Tick ====================

    def _daily_rollover(self, now: datetime) -> None:
        state = self.ledger.state
        stats = self.ledger.stats()
        logger.info(f"DAILY SUMMARY ({state.last_reset:%Y-%m-%d})")
        logger.info(f"   Balance: ${state.balance:.2f}")
        logger.info(f"   P&L: ${stats['daily_pnl']:.2f} ({stats['daily_pnl_percent']:.2f}%, net after fees)")
        logger.info(f"   Trades: {stats['total_trades']} ({stats['wins']}W/{stats['losses']}L)")
        logger.info(f"   Win Rate: {stats['win_rate']:.1f}%")
        self.ledger.reset_daily(now)

    def _get_overrides(self, now: datetime) -> Overrides:
        if self.override_source is None:
            return Overrides()
        try:
            raw = self.override_source(now)
            if isinstance(raw, Overrides):
                return raw
            return Overrides.model_validate(raw)
        except (ValidationError, httpx.HTTPError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring override input: {e}")
            return Overrides()
        except Exception:
            # Overrides are optional; a broken source must not block exits
            logger.exception("Override source failed, using defaults")
            return Overrides()

    def _get_signal(self, candles: list[Candle], overrides: Overrides) -> Optional[Signal]:
        try:
            raw = self.signal_source(candles, overrides)
            signal_ = raw if isinstance(raw, Signal) else Signal.model_validate(raw)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed signal: {e}")
            return None
        if signal_.detected and signal_.side is None:
            logger.warning("Ignoring signal without a side")
            return None
        return signal_

    def _close_triggered(self, price: float, now: datetime, overrides: Overrides) -> list[Position]:
        closed = []
        for position in list(self.ledger.open_positions):
            decision = self.engine.evaluate(position, price, now, overrides)
            if not decision.should_close:
                continue
            result = self.ledger.close_position(position.id, decision.exit_price, decision.reason, now)
            if result is None:
                continue
            held = (result.exit_time - result.entry_time).total_seconds()
            logger.info(
                f"CLOSED {result.side} NET ${result.pnl:.2f} "
                f"(gross ${result.gross_pnl:.2f} - ${result.fees:.2f} fees) "
                f"in {held:.0f}s | {result.reason}"
            )
            closed.append(result)
        return closed

    def tick(self, now: Optional[datetime] = None) -> TickResult:
        """Run one decision cycle.

        Args:
            now: Tick time, defaults to the current UTC time.

        Returns:
            TickResult describing closes, the entry (if any) and why an
            entry was skipped.
        """
        now = now or datetime.now(timezone.utc)
        ctx = self.context
        ctx.tick_count += 1
        tick_id = f"#{ctx.tick_count}"
        cfg = self.config

        if self.ledger.needs_daily_reset(now):
            self._daily_rollover(now)

        overrides = self._get_overrides(now)

        try:
            candles = self.market.get_candles(cfg.market.symbol, cfg.market.interval, cfg.market.candle_limit)
        except httpx.HTTPError as e:
            logger.error(f"{tick_id} Market data fetch failed: {e}")
            return TickResult(tick=ctx.tick_count, skipped="Market data unavailable")
        if not candles:
            return TickResult(tick=ctx.tick_count, skipped="No bars")

        price = candles[-1].close
        closed = self._close_triggered(price, now, overrides)

        def _skip(reason: str, every: int = 0) -> TickResult:
            if every and ctx.tick_count % every == 0:
                logger.info(f"{tick_id} {reason}")
            return TickResult(tick=ctx.tick_count, price=price, closed=closed, skipped=reason)

        if ctx.tick_count % cfg.loop.status_every == 0 or closed:
            stats = self.ledger.stats()
            logger.info(
                f"{tick_id} ${self.ledger.state.balance:.2f} | Day: ${stats['daily_pnl']:.2f} (net) | "
                f"{stats['total_trades']} trades ({stats['win_rate']:.1f}% W) | "
                f"{cfg.market.symbol}: ${price:.2f}"
            )

        if not overrides.trading_enabled:
            return _skip(overrides.reason or "Trading disabled by advisory", every=2 * cfg.loop.status_every)

        check = self.gate.can_open_position(self.ledger, now)
        if not check.allowed:
            return _skip(check.reason or "Risk gate closed", every=2 * cfg.loop.status_every)

        cooldown = timedelta(seconds=cfg.loop.min_signal_interval_seconds)
        if ctx.last_signal_time is not None and now - ctx.last_signal_time < cooldown:
            return _skip("Signal cooldown")

        signal_ = self._get_signal(candles, overrides)
        if signal_ is None:
            return _skip("Malformed signal")
        if not signal_.detected:
            return _skip(signal_.reason or "No signal", every=cfg.loop.status_every)

        if overrides.preferred_side and signal_.side != overrides.preferred_side:
            return _skip(
                f"Skipping {signal_.side}, regime prefers {overrides.preferred_side}",
                every=cfg.loop.status_every,
            )

        logger.info(f"{tick_id} {signal_.reason}")
        position = self.engine.create(
            signal_.side,
            price,
            cfg.risk.position_size_dollars,
            now=now,
            overrides=overrides,
        )
        self.ledger.open_position(position)
        ctx.last_signal_time = now

        round_trip = position.size * self.engine.fee_rate * 2
        logger.info(
            f"{signal_.side} ${position.size:.0f} @ ${price:.2f} | "
            f"SL ${position.stop_loss:.2f} TP ${position.take_profit:.2f} | Fees: ${round_trip:.2f}"
        )
        return TickResult(tick=ctx.tick_count, price=price, closed=closed, opened=position)


def create_loop(config: AppConfig) -> DecisionLoop:
    """Wire a decision loop from configuration.

    Replication and the market brief are enabled only when the sync
    section names a repository and a token is available.
    """
    from scalper.advisory import BriefReader
    from scalper.strategy import MomentumDetector
    from scalper.sync import GitHubContentsStore

    engine = PositionEngine(config.strategy, config.futures, config.fees)
    ledger = Ledger(config.risk, engine, LedgerFile(config.ledger_path))
    gate = RiskGate(config.risk, config.futures)
    market = BinanceClient(config.market.base_url)

    replicator = None
    override_source = None
    sync = config.sync
    if sync.active:
        token = sync.resolved_token()
        ledger_store = GitHubContentsStore(
            sync.repo, sync.ledger_path, token, branch=sync.branch, api_url=sync.api_url
        )
        brief_store = GitHubContentsStore(
            sync.repo, sync.brief_path, token, branch=sync.branch, api_url=sync.api_url
        )
        replicator = LedgerReplicator(ledger_store, ledger)
        override_source = BriefReader(brief_store)
    else:
        logger.warning("Remote sync disabled (no repo or token); ledger is local only")

    return DecisionLoop(
        config=config,
        ledger=ledger,
        engine=engine,
        gate=gate,
        market=market,
        signal_source=MomentumDetector(config.strategy),
        override_source=override_source,
        replicator=replicator,
    )
