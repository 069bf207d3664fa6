"""
StakePool Unified Configuration

Loads all sections of config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    StakePoolConfig,
    PoolSectionConfig,
    TokenSectionConfig,
    ReceiptSectionConfig,
    LoggingSectionConfig,
    build_pool,
    load_config,
)

__all__ = [
    "StakePoolConfig",
    "PoolSectionConfig",
    "TokenSectionConfig",
    "ReceiptSectionConfig",
    "LoggingSectionConfig",
    "build_pool",
    "load_config",
]
