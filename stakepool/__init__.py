"""
StakePool Package

Staking-rewards accounting: a fungible ledger, custody of the staked asset,
and a reward-per-token accrual engine driven by an injectable clock.

Core imports are lazily loaded so that importing a submodule does not pull
in the whole package:

    from stakepool.staking import StakingRewards
    from stakepool.tokens import FungibleToken
    from stakepool.clock import ManualClock
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'StakingRewards':
        from .staking.engine import StakingRewards
        return StakingRewards
    elif name == 'FungibleToken':
        from .tokens.ledger import FungibleToken
        return FungibleToken
    elif name == 'ManualClock':
        from .clock import ManualClock
        return ManualClock
    elif name == 'SystemClock':
        from .clock import SystemClock
        return SystemClock
    elif name == 'load_config':
        from .config.loader import load_config
        return load_config
    raise AttributeError(f"module 'stakepool' has no attribute {name!r}")

__all__ = ['StakingRewards', 'FungibleToken', 'ManualClock', 'SystemClock', 'load_config']
