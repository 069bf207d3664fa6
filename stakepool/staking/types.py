"""
StakePool Staking Types and Exceptions

Core data types for the reward accrual engine.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

from ..exceptions import StakePoolException


class StakingError(StakePoolException):
    """Base exception for staking operations."""
    pass


class ExceedsStakeError(StakingError):
    """Raised when a withdrawal is larger than the caller's staked balance."""
    def __init__(self, requested: int, staked: int):
        self.requested = requested
        self.staked = staked
        super().__init__(
            f"withdraw exceeds stake: requested {requested}, staked {staked}"
        )


class UnauthorizedError(StakingError):
    """Raised when a caller lacks the role an administrative call needs."""
    pass


class InsufficientRewardReserveError(StakingError):
    """Raised when a reward rate would outrun the funded reserve."""
    def __init__(self, rate: int, runway: int, required: int):
        self.rate = rate
        self.runway = runway
        self.required = required
        super().__init__(
            f"Reward reserve covers {runway}s at rate {rate}/s "
            f"(required: {required}s)"
        )


@dataclass
class Pool:
    """
    Process-wide accounting state of one staking pool.

    Attributes:
        reward_rate: Reward units emitted per second, split across all stake
        reward_per_token_stored: Scaled cumulative reward per staked unit,
            as of ``last_update_time``
        last_update_time: Timestamp of the last accumulator refresh
        reward_reserve: Funded reward asset held in custody, not yet paid
        total_emitted: Rewards emitted to stakers since deployment
        total_claimed: Rewards paid out by claims
    """
    reward_rate: int
    last_update_time: int
    reward_per_token_stored: int = 0
    reward_reserve: int = 0
    total_emitted: int = 0
    total_claimed: int = 0

    @property
    def outstanding_rewards(self) -> int:
        """Emitted but not yet claimed (upper bound on what stakers are owed)."""
        return self.total_emitted - self.total_claimed


@dataclass
class Participant:
    """
    Per-address reward bookkeeping. Created on first interaction.

    Attributes:
        reward_per_token_paid: Accumulator value at the last settlement
        rewards: Settled but unclaimed rewards
        total_claimed: Lifetime rewards paid to this participant
    """
    reward_per_token_paid: int = 0
    rewards: int = 0
    total_claimed: int = 0


@dataclass(frozen=True)
class PoolSnapshot:
    """Consistent read-only view of the pool at one instant."""
    timestamp: int
    reward_rate: int
    reward_per_token: int
    total_staked: int
    reward_reserve: int
    outstanding_rewards: int
    available_reserve: int
    participants: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StakedEvent:
    participant: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "Staked", "participant": self.participant,
                "amount": self.amount, "timestamp": self.timestamp}


@dataclass(frozen=True)
class WithdrawnEvent:
    participant: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "Withdrawn", "participant": self.participant,
                "amount": self.amount, "timestamp": self.timestamp}


@dataclass(frozen=True)
class RewardClaimedEvent:
    participant: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "RewardClaimed", "participant": self.participant,
                "amount": self.amount, "timestamp": self.timestamp}


@dataclass(frozen=True)
class RewardsFundedEvent:
    funder: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "RewardsFunded", "funder": self.funder,
                "amount": self.amount, "timestamp": self.timestamp}


@dataclass(frozen=True)
class RewardRateUpdatedEvent:
    old_rate: int
    new_rate: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "RewardRateUpdated", "oldRate": self.old_rate,
                "newRate": self.new_rate, "timestamp": self.timestamp}
