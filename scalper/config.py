"""Configuration loading for the paper scalper.

Settings live in a TOML file (``~/.config/scalper/config.toml`` by default)
and are validated into a tree of pydantic models. Every field has a default,
so a missing file simply means "run with the defaults".
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "scalper"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_LEDGER_PATH = CONFIG_DIR / "ledger.json"


class MarketConfig(BaseModel):
    """Market data settings."""

    symbol: str = Field(default="BTCUSDT", min_length=1)
    interval: str = Field(default="1m")
    candle_limit: int = Field(default=30, gt=0)
    base_url: str = Field(default="https://data-api.binance.vision")


class FuturesConfig(BaseModel):
    """Leverage and position count settings."""

    leverage: float = Field(default=75, gt=0)
    max_positions: int = Field(default=1, ge=1)


class FeeConfig(BaseModel):
    """Exchange fee settings. Percentages are per side."""

    taker_fee_percent: float = Field(default=0.04, ge=0)
    maker_fee_percent: float = Field(default=0.02, ge=0)
    fee_mode: Literal["taker", "maker"] = Field(default="taker")

    @property
    def fee_rate(self) -> float:
        """Fee per side as a fraction of notional."""
        percent = self.taker_fee_percent if self.fee_mode == "taker" else self.maker_fee_percent
        return percent / 100


class StrategyConfig(BaseModel):
    """Entry levels, exit ladder thresholds and signal parameters."""

    initial_stop_percent: float = Field(default=0.053, gt=0)
    target_profit_percent: float = Field(default=0.053, gt=0)
    min_profit_dollars: float = Field(default=15, ge=0)
    max_profit_dollars: float = Field(default=60, ge=0)
    quick_exit_seconds: float = Field(default=45, ge=0)
    quick_grab_dollars: float = Field(default=8, ge=0)
    breakeven_seconds: float = Field(default=90, ge=0)
    underwater_cut_seconds: float = Field(default=120, ge=0)
    underwater_min_loss: float = Field(default=-15, le=0)
    max_trade_seconds: float = Field(default=180, gt=0)
    consecutive_candles: int = Field(default=2, ge=1)
    momentum_threshold: float = Field(default=0.03, gt=0)
    max_chase_percent: float = Field(default=0.25, gt=0)
    volume_multiplier: float = Field(default=0.8, ge=0)
    volume_lookback: int = Field(default=10, ge=1)


class RiskConfig(BaseModel):
    """Account level risk limits."""

    initial_balance: float = Field(default=2000, gt=0)
    position_size_dollars: float = Field(default=500, gt=0)
    risk_per_trade: float = Field(default=500, ge=0)
    max_daily_loss_dollars: float = Field(default=100, gt=0)
    max_consecutive_losses: int = Field(default=3, ge=1)
    pause_after_losses_minutes: float = Field(default=30, ge=0)
    max_trades_per_hour: int = Field(default=6, ge=1)


class LoopConfig(BaseModel):
    """Decision loop timing."""

    scan_interval_seconds: float = Field(default=30, gt=0)
    sync_interval_seconds: float = Field(default=300, gt=0)
    min_signal_interval_seconds: float = Field(default=30, ge=0)
    status_every: int = Field(default=10, ge=1)


class SyncConfig(BaseModel):
    """Remote ledger replication settings (GitHub contents API)."""

    enabled: bool = Field(default=True)
    repo: str = Field(default="")
    branch: str = Field(default="data")
    ledger_path: str = Field(default="data/ledger.json")
    brief_path: str = Field(default="data/market-brief.json")
    token: str = Field(default="")
    api_url: str = Field(default="https://api.github.com")

    def resolved_token(self) -> str:
        """Token from config, falling back to the GITHUB_TOKEN env var."""
        return self.token or os.environ.get("GITHUB_TOKEN", "")

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.repo) and bool(self.resolved_token())


class AppConfig(BaseModel):
    """Complete application configuration."""

    ledger_path: Path = Field(default=DEFAULT_LEDGER_PATH)
    market: MarketConfig = Field(default_factory=MarketConfig)
    futures: FuturesConfig = Field(default_factory=FuturesConfig)
    fees: FeeConfig = Field(default_factory=FeeConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)


def get_config_path(path: Optional[Path] = None) -> Path:
    """Resolve the config file path (argument, then SCALPER_CONFIG, then default)."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get("SCALPER_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration from TOML.

    Args:
        path: Optional explicit config file path.

    Returns:
        Validated configuration. Defaults are used when the file is
        missing, unreadable or invalid.
    """
    import toml

    config_path = get_config_path(path)
    if not config_path.exists():
        return AppConfig()

    try:
        raw = toml.load(config_path)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Could not read config {config_path}: {e}; using defaults")
        return AppConfig()

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Invalid config {config_path}: {e}; using defaults")
        return AppConfig()


def write_template_config(path: Optional[Path] = None) -> Path:
    """Write a template configuration file with all defaults.

    Args:
        path: Optional destination path.

    Returns:
        Path of the written file.
    """
    import toml

    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = AppConfig().model_dump(mode="json")
    template["sync"]["repo"] = "owner/repo"
    template["sync"]["token"] = ""  # Leave empty to use GITHUB_TOKEN env var

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path
