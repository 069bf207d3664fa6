"""
StakePool Reward Accrual Engine

Distributes a continuous reward stream (``reward_rate`` units per second)
across all staked principal, in proportion to stake and time staked.

The engine keeps one global accumulator, ``reward_per_token_stored``: the
reward one staked unit has earned since deployment, scaled by ``PRECISION``.
Each participant remembers the accumulator value at their last settlement,
so their pending reward is always

    staked * (reward_per_token() - reward_per_token_paid) // PRECISION

Every state-changing entry point settles the caller before it changes any
stake, which is why a deposit never earns retroactively and a withdrawal
stops accrual at exactly the withdrawal instant.

Mutating calls are serialized by a single ``asyncio.Lock`` and commit
without awaiting anything after validation. Views never take the lock.
"""

import asyncio
from typing import Any, Dict, List, Optional

from ..clock import Clock, SystemClock
from ..constants import (
    DEFAULT_MIN_RUNWAY_SECONDS,
    DEFAULT_POOL_ADDRESS,
    PRECISION,
    RECEIPT_DEFAULT_NAME,
    RECEIPT_DEFAULT_SYMBOL,
)
from ..exceptions import InvalidAmountError
from ..logger import get_logger
from ..tokens.ledger import FungibleToken, TransferEvent, require_int
from ..tokens.receipt import ReceiptToken
from .custody import Custody
from .types import (
    ExceedsStakeError,
    InsufficientRewardReserveError,
    Participant,
    Pool,
    PoolSnapshot,
    RewardClaimedEvent,
    RewardRateUpdatedEvent,
    RewardsFundedEvent,
    StakedEvent,
    UnauthorizedError,
    WithdrawnEvent,
)

logger = get_logger(__name__)


class StakingRewards:
    """
    Staking pool paying a per-second reward stream pro rata to stake.

    Staked principal is represented by a ``ReceiptToken`` minted 1:1 on
    stake and burned on withdraw; the receipt balance of an address is its
    staked balance. Moving receipt units moves stake and future accrual.
    """

    def __init__(
        self,
        staking_token: FungibleToken,
        reward_rate: int,
        *,
        owner: str,
        clock: Optional[Clock] = None,
        address: str = DEFAULT_POOL_ADDRESS,
        reward_token: Optional[FungibleToken] = None,
        receipt_name: str = RECEIPT_DEFAULT_NAME,
        receipt_symbol: str = RECEIPT_DEFAULT_SYMBOL,
        min_runway_seconds: int = DEFAULT_MIN_RUNWAY_SECONDS,
    ):
        """
        Args:
            staking_token: Asset deposited by stakers
            reward_rate: Reward units emitted per second
            owner: Address allowed to change the reward rate
            clock: Time source (defaults to wall clock)
            address: Custody account of this pool
            reward_token: Asset paid as reward (defaults to staking_token)
            receipt_name: Name of the receipt token
            receipt_symbol: Ticker of the receipt token
            min_runway_seconds: Seconds of emission the reserve must cover
                before a rate change is accepted (0 disables the check)
        """
        require_int(reward_rate, "Reward rate")
        require_int(min_runway_seconds, "Minimum runway")
        if reward_rate < 0:
            raise InvalidAmountError(f"Reward rate cannot be negative, got {reward_rate}")
        if min_runway_seconds < 0:
            raise InvalidAmountError("Minimum runway cannot be negative")
        if not owner:
            raise UnauthorizedError("Pool owner cannot be empty")

        self.address = address
        self.owner = owner
        self.clock: Clock = clock or SystemClock()
        self.min_runway_seconds = min_runway_seconds

        self.staking_token = staking_token
        self.reward_token = reward_token or staking_token
        self.receipt = ReceiptToken(
            pool_address=address,
            name=receipt_name,
            symbol=receipt_symbol,
            decimals=staking_token.decimals,
            before_transfer=self._on_receipt_transfer,
        )

        self._stake_custody = Custody(self.staking_token, address)
        if self.reward_token is self.staking_token:
            self._reward_custody = self._stake_custody
        else:
            self._reward_custody = Custody(self.reward_token, address)

        self.pool = Pool(reward_rate=reward_rate, last_update_time=self.clock.now())
        self._participants: Dict[str, Participant] = {}
        self._events: List[Any] = []
        self._lock = asyncio.Lock()

        logger.info(
            f"Staking pool deployed at {address}: stake={self.staking_token.symbol} "
            f"reward={self.reward_token.symbol} rate={reward_rate}/s"
        )

    # =========================================================================
    # VIEWS
    # =========================================================================

    @property
    def total_staked(self) -> int:
        return self.receipt.total_supply

    def staked_balance(self, address: str) -> int:
        return self.receipt.balance_of(address)

    def rewards(self, address: str) -> int:
        """Settled, unclaimed rewards (excludes accrual since last settlement)."""
        participant = self._participants.get(address)
        return participant.rewards if participant else 0

    def total_claimed_by(self, address: str) -> int:
        participant = self._participants.get(address)
        return participant.total_claimed if participant else 0

    @property
    def reward_rate(self) -> int:
        return self.pool.reward_rate

    @property
    def reward_reserve(self) -> int:
        return self.pool.reward_reserve

    @property
    def last_update_time(self) -> int:
        return self.pool.last_update_time

    @property
    def reward_per_token_stored(self) -> int:
        return self.pool.reward_per_token_stored

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    @property
    def participants(self) -> List[str]:
        return list(self._participants)

    def reward_per_token(self) -> int:
        """Accumulator value as of now, without storing it."""
        return self._reward_per_token_at(self._now())

    def earned(self, address: str) -> int:
        """
        Settled rewards plus accrual since the last settlement.

        Pure read: calling it repeatedly without an intervening mutation
        returns the same value.
        """
        return self.rewards(address) + self._pending(address, self.reward_per_token())

    @property
    def outstanding_rewards(self) -> int:
        """Rewards emitted up to now and not yet claimed."""
        return self.pool.outstanding_rewards + self._pending_emission(self._now())

    @property
    def available_reserve(self) -> int:
        """Reserve left after covering outstanding rewards; negative when underfunded."""
        return self.pool.reward_reserve - self.outstanding_rewards

    def is_solvent(self) -> bool:
        return self.available_reserve >= 0

    def reward_runway(self, rate: Optional[int] = None) -> Optional[int]:
        """
        Seconds of emission the unallocated reserve still covers at *rate*
        (defaults to the current rate). ``None`` when the rate is zero.
        """
        rate = self.pool.reward_rate if rate is None else rate
        if rate <= 0:
            return None
        return max(self.available_reserve, 0) // rate

    def snapshot(self) -> PoolSnapshot:
        now = self._now()
        outstanding = self.pool.outstanding_rewards + self._pending_emission(now)
        return PoolSnapshot(
            timestamp=now,
            reward_rate=self.pool.reward_rate,
            reward_per_token=self._reward_per_token_at(now),
            total_staked=self.total_staked,
            reward_reserve=self.pool.reward_reserve,
            outstanding_rewards=outstanding,
            available_reserve=self.pool.reward_reserve - outstanding,
            participants=len(self._participants),
        )

    # =========================================================================
    # ACCRUAL
    # =========================================================================

    def _now(self) -> int:
        # A wall clock can step backwards; the accumulator must not.
        return max(self.clock.now(), self.pool.last_update_time)

    def _reward_per_token_at(self, now: int) -> int:
        total = self.total_staked
        if total == 0:
            return self.pool.reward_per_token_stored
        elapsed = now - self.pool.last_update_time
        return (
            self.pool.reward_per_token_stored
            + self.pool.reward_rate * elapsed * PRECISION // total
        )

    def _pending_emission(self, now: int) -> int:
        if self.total_staked == 0:
            return 0
        return self.pool.reward_rate * (now - self.pool.last_update_time)

    def _pending(self, address: str, reward_per_token: int) -> int:
        participant = self._participants.get(address)
        paid = participant.reward_per_token_paid if participant else 0
        return self.staked_balance(address) * (reward_per_token - paid) // PRECISION

    def _participant(self, address: str) -> Participant:
        participant = self._participants.get(address)
        if participant is None:
            participant = Participant(reward_per_token_paid=self.pool.reward_per_token_stored)
            self._participants[address] = participant
        return participant

    def _update_pool(self) -> None:
        now = self._now()
        self.pool.total_emitted += self._pending_emission(now)
        self.pool.reward_per_token_stored = self._reward_per_token_at(now)
        self.pool.last_update_time = now
        logger.debug(
            f"Accumulator updated: rpt={self.pool.reward_per_token_stored} at t={now}"
        )

    def _settle(self, address: str) -> Participant:
        self._update_pool()
        stored = self.pool.reward_per_token_stored
        participant = self._participant(address)
        participant.rewards += self._pending(address, stored)
        participant.reward_per_token_paid = stored
        return participant

    def _emit(self, event: Any) -> None:
        self._events.append(event)

    def _require_external(self, caller: str) -> None:
        # The custody account cannot pay itself; a push to it would fail mid-commit.
        if caller == self.address:
            raise UnauthorizedError(f"Pool custody account {caller} cannot act as a participant")

    # =========================================================================
    # STAKING
    # =========================================================================

    async def stake(self, caller: str, amount: int) -> StakedEvent:
        """
        Deposit *amount* of the staking token and start earning on it.

        The caller must have approved the pool for at least *amount*.

        Raises:
            InvalidAmountError: amount is not positive
            InsufficientAllowanceError: approval below amount
            InsufficientBalanceError: caller holds less than amount
            UnauthorizedError: caller is the pool's own custody account
        """
        self._require_external(caller)
        require_int(amount, "stake amount")
        if amount <= 0:
            raise InvalidAmountError("stake amount must be > 0")

        async with self._lock:
            # Pull first: a failed pull must leave the accumulator untouched.
            self._stake_custody.pull(caller, amount)
            self._settle(caller)
            self.receipt.mint(self.address, caller, amount)

            event = StakedEvent(caller, amount, self.pool.last_update_time)
            self._emit(event)

        logger.info(f"Staked: {caller} {amount} (total={self.total_staked})")
        return event

    async def withdraw(self, caller: str, amount: int) -> WithdrawnEvent:
        """
        Return *amount* of the caller's staked principal.

        Raises:
            InvalidAmountError: amount is not positive
            ExceedsStakeError: amount is larger than the caller's stake
        """
        self._require_external(caller)
        require_int(amount, "withdraw amount")
        if amount <= 0:
            raise InvalidAmountError("withdraw amount must be > 0")

        async with self._lock:
            event = self._withdraw(caller, amount)

        logger.info(f"Withdrawn: {caller} {amount} (total={self.total_staked})")
        return event

    def _withdraw(self, caller: str, amount: int) -> WithdrawnEvent:
        staked = self.staked_balance(caller)
        if amount > staked:
            raise ExceedsStakeError(amount, staked)
        self._stake_custody.require_available(amount)

        self._settle(caller)
        self.receipt.burn(self.address, caller, amount)
        self._stake_custody.push(caller, amount)

        event = WithdrawnEvent(caller, amount, self.pool.last_update_time)
        self._emit(event)
        return event

    async def claim_rewards(self, caller: str) -> int:
        """
        Pay the caller everything earned so far and return the amount paid.

        Claiming with nothing owed is a zero-amount no-op. If the reserve
        cannot cover the full amount, the reserve is paid out and the
        remainder stays owed.
        """
        self._require_external(caller)
        async with self._lock:
            return self._claim(caller)

    def _claim(self, caller: str) -> int:
        participant = self._settle(caller)
        owed = participant.rewards
        paid = min(owed, self.pool.reward_reserve)
        self._reward_custody.require_available(paid)

        participant.rewards -= paid
        participant.total_claimed += paid
        self.pool.reward_reserve -= paid
        self.pool.total_claimed += paid
        self._reward_custody.push(caller, paid)

        self._emit(RewardClaimedEvent(caller, paid, self.pool.last_update_time))
        if paid < owed:
            logger.warning(
                f"Reward reserve exhausted: {caller} owed {owed}, paid {paid}, "
                f"{owed - paid} still owed"
            )
        logger.info(f"RewardClaimed: {caller} {paid}")
        return paid

    async def exit(self, caller: str) -> int:
        """Withdraw the caller's full stake and claim; returns the reward paid."""
        self._require_external(caller)
        async with self._lock:
            staked = self.staked_balance(caller)
            if staked > 0:
                self._withdraw(caller, staked)
                logger.info(f"Withdrawn: {caller} {staked} (total={self.total_staked})")
            return self._claim(caller)

    async def transfer_receipt(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        """
        Move receipt units, and with them stake and future accrual.

        Rewards already accrued stay with *sender*.
        """
        async with self._lock:
            return self.receipt.transfer(sender, recipient, amount)

    def _on_receipt_transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._settle(sender)
        self._settle(recipient)
        logger.info(f"Stake moved by receipt transfer: {sender} → {recipient} {amount}")

    # =========================================================================
    # FUNDING
    # =========================================================================

    async def fund_rewards(self, funder: str, amount: int) -> RewardsFundedEvent:
        """
        Top up the reward reserve from *funder*'s approved balance.

        Funding does not touch the accumulator; the rate is independent of
        the reserve size.
        """
        self._require_external(funder)
        require_int(amount, "fund amount")
        if amount <= 0:
            raise InvalidAmountError("fund amount must be > 0")

        async with self._lock:
            self._reward_custody.pull(funder, amount)
            self.pool.reward_reserve += amount

            event = RewardsFundedEvent(funder, amount, self._now())
            self._emit(event)

        logger.info(f"RewardsFunded: {funder} {amount} (reserve={self.pool.reward_reserve})")
        if not self.is_solvent():
            logger.warning(f"Pool still underfunded by {-self.available_reserve}")
        return event

    async def set_reward_rate(self, caller: str, new_rate: int) -> RewardRateUpdatedEvent:
        """
        Change the per-second reward rate (owner only).

        Accrual up to now is settled at the old rate before the change.
        """
        if caller != self.owner:
            raise UnauthorizedError(f"{caller} is not the pool owner")
        require_int(new_rate, "Reward rate")
        if new_rate < 0:
            raise InvalidAmountError(f"Reward rate cannot be negative, got {new_rate}")

        async with self._lock:
            if self.min_runway_seconds and new_rate > 0:
                runway = self.reward_runway(new_rate)
                if runway < self.min_runway_seconds:
                    raise InsufficientRewardReserveError(new_rate, runway, self.min_runway_seconds)

            self._update_pool()
            old_rate = self.pool.reward_rate
            self.pool.reward_rate = new_rate

            event = RewardRateUpdatedEvent(old_rate, new_rate, self.pool.last_update_time)
            self._emit(event)

        logger.info(f"RewardRateUpdated: {old_rate}/s → {new_rate}/s")
        return event

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "owner": self.owner,
            "stakingToken": self.staking_token.symbol,
            "rewardToken": self.reward_token.symbol,
            "receiptToken": self.receipt.symbol,
            "precision": PRECISION,
            **self.snapshot().to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"<StakingRewards {self.staking_token.symbol} staked={self.total_staked} "
            f"rate={self.pool.reward_rate}/s>"
        )
