"""
StakePool Staking Module

Reward accrual engine, custody and pool types.
"""

from .types import (
    StakingError,
    ExceedsStakeError,
    UnauthorizedError,
    InsufficientRewardReserveError,
    Pool,
    Participant,
    PoolSnapshot,
    StakedEvent,
    WithdrawnEvent,
    RewardClaimedEvent,
    RewardsFundedEvent,
    RewardRateUpdatedEvent,
)
from .custody import Custody
from .engine import StakingRewards

__all__ = [
    # Engine
    'StakingRewards',
    'Custody',
    # State
    'Pool',
    'Participant',
    'PoolSnapshot',
    # Events
    'StakedEvent',
    'WithdrawnEvent',
    'RewardClaimedEvent',
    'RewardsFundedEvent',
    'RewardRateUpdatedEvent',
    # Exceptions
    'StakingError',
    'ExceedsStakeError',
    'UnauthorizedError',
    'InsufficientRewardReserveError',
]
