"""
StakePool TOML Configuration Loader

Loads every section of config.toml with environment variable overrides.
Each section is a dataclass with ``from_dict`` / ``apply_env`` / ``validate``.

Environment variable mapping:
    [pool] reward_rate        → STAKEPOOL_REWARD_RATE
    [pool] owner              → STAKEPOOL_OWNER
    [pool] address            → STAKEPOOL_POOL_ADDRESS
    [pool] min_runway_seconds → STAKEPOOL_MIN_RUNWAY
    [token] symbol            → STAKEPOOL_STAKING_SYMBOL
    [logging] level           → STAKEPOOL_LOG_LEVEL
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_MIN_RUNWAY_SECONDS,
    DEFAULT_POOL_ADDRESS,
    DEFAULT_REWARD_RATE,
    RECEIPT_DEFAULT_NAME,
    RECEIPT_DEFAULT_SYMBOL,
    TOKEN_DEFAULT_DECIMALS,
    TOKEN_MAX_DECIMALS,
)
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return int(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}") from None


def as_int(value: Any, name: str) -> int:
    """Integer setting from parsed TOML; strings and floats are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return value


def as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string, got {value!r}")
    return value


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"[{name}] must be a table, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass
class PoolSectionConfig:
    """[pool] section."""
    reward_rate: int = DEFAULT_REWARD_RATE
    owner: str = "owner"
    address: str = DEFAULT_POOL_ADDRESS
    min_runway_seconds: int = DEFAULT_MIN_RUNWAY_SECONDS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolSectionConfig":
        return cls(
            reward_rate=as_int(data.get("reward_rate", DEFAULT_REWARD_RATE), "pool.reward_rate"),
            owner=as_str(data.get("owner", "owner"), "pool.owner"),
            address=as_str(data.get("address", DEFAULT_POOL_ADDRESS), "pool.address"),
            min_runway_seconds=as_int(
                data.get("min_runway_seconds", DEFAULT_MIN_RUNWAY_SECONDS), "pool.min_runway_seconds"
            ),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if (v := _env_int("STAKEPOOL_REWARD_RATE")) is not None:
            self.reward_rate = v
        if v := os.environ.get("STAKEPOOL_OWNER"):
            self.owner = v
        if v := os.environ.get("STAKEPOOL_POOL_ADDRESS"):
            self.address = v
        if (v := _env_int("STAKEPOOL_MIN_RUNWAY")) is not None:
            self.min_runway_seconds = v

    def validate(self) -> None:
        if self.reward_rate < 0:
            raise ConfigurationError("reward_rate must be >= 0")
        if self.min_runway_seconds < 0:
            raise ConfigurationError("min_runway_seconds must be >= 0")
        if not self.owner:
            raise ConfigurationError("owner must be set")
        if not self.address:
            raise ConfigurationError("address must be set")


@dataclass
class TokenSectionConfig:
    """[token] section: the staking asset used by simulations."""
    name: str = "Stake Token"
    symbol: str = "STK"
    decimals: int = TOKEN_DEFAULT_DECIMALS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenSectionConfig":
        return cls(
            name=as_str(data.get("name", "Stake Token"), "token.name"),
            symbol=as_str(data.get("symbol", "STK"), "token.symbol"),
            decimals=as_int(data.get("decimals", TOKEN_DEFAULT_DECIMALS), "token.decimals"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("STAKEPOOL_STAKING_SYMBOL"):
            self.symbol = v

    def validate(self) -> None:
        if not self.name or not self.symbol:
            raise ConfigurationError("token name and symbol must be set")
        if not 0 <= self.decimals <= TOKEN_MAX_DECIMALS:
            raise ConfigurationError(f"token decimals must be 0-{TOKEN_MAX_DECIMALS}")


@dataclass
class ReceiptSectionConfig:
    """[receipt] section."""
    name: str = RECEIPT_DEFAULT_NAME
    symbol: str = RECEIPT_DEFAULT_SYMBOL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReceiptSectionConfig":
        return cls(
            name=as_str(data.get("name", RECEIPT_DEFAULT_NAME), "receipt.name"),
            symbol=as_str(data.get("symbol", RECEIPT_DEFAULT_SYMBOL), "receipt.symbol"),
        )


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(level=as_str(data.get("level", "INFO"), "logging.level").upper())

    def apply_env(self) -> None:
        if v := os.environ.get("STAKEPOOL_LOG_LEVEL"):
            self.level = v.upper()


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class StakePoolConfig:
    """
    Unified pool configuration.

    Loads every section of config.toml and applies environment variable
    overrides.
    """
    pool: PoolSectionConfig = field(default_factory=PoolSectionConfig)
    token: TokenSectionConfig = field(default_factory=TokenSectionConfig)
    receipt: ReceiptSectionConfig = field(default_factory=ReceiptSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StakePoolConfig":
        """Create StakePoolConfig from a parsed TOML dict."""
        return cls(
            pool=PoolSectionConfig.from_dict(_section(data, "pool")),
            token=TokenSectionConfig.from_dict(_section(data, "token")),
            receipt=ReceiptSectionConfig.from_dict(_section(data, "receipt")),
            logging=LoggingSectionConfig.from_dict(_section(data, "logging")),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "StakePoolConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides applied).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.pool.apply_env()
        self.token.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.pool.validate()
        self.token.validate()
        if not self.receipt.name or not self.receipt.symbol:
            raise ConfigurationError("receipt name and symbol must be set")
        if self.receipt.symbol == self.token.symbol:
            raise ConfigurationError("receipt symbol must differ from the staking token")
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": {
                "reward_rate": self.pool.reward_rate,
                "owner": self.pool.owner,
                "address": self.pool.address,
                "min_runway_seconds": self.pool.min_runway_seconds,
            },
            "token": {
                "name": self.token.name,
                "symbol": self.token.symbol,
                "decimals": self.token.decimals,
            },
            "receipt": {
                "name": self.receipt.name,
                "symbol": self.receipt.symbol,
            },
            "logging": {
                "level": self.logging.level,
            },
        }


# -----------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> StakePoolConfig:
    """
    Load pool configuration.

    Resolution order:
        1. Explicit *path* argument
        2. STAKEPOOL_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("STAKEPOOL_CONFIG", "config.toml")

    cfg = StakePoolConfig.from_file(path)
    cfg.validate()
    return cfg


def build_pool(config: StakePoolConfig, staking_token, clock=None, reward_token=None):
    """Construct a ``StakingRewards`` engine from *config*."""
    from ..staking.engine import StakingRewards

    return StakingRewards(
        staking_token,
        config.pool.reward_rate,
        owner=config.pool.owner,
        clock=clock,
        address=config.pool.address,
        reward_token=reward_token,
        receipt_name=config.receipt.name,
        receipt_symbol=config.receipt.symbol,
        min_runway_seconds=config.pool.min_runway_seconds,
    )
