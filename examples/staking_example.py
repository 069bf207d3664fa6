"""
Staking Pool Example

Demonstrates deploying a staking pool, staking from two accounts, letting
time pass on a manual clock, and claiming rewards.
"""

import asyncio

from stakepool.clock import ManualClock
from stakepool.staking import StakingRewards
from stakepool.tokens import FungibleToken


async def example_two_stakers():
    """Example: two stakers share a 10/s reward stream."""

    clock = ManualClock(start=1_700_000_000)
    token = FungibleToken("Stake Token", "STK", decimals=0, deployer="owner")
    for account, amount in (("owner", 100_000), ("alice", 1_000), ("bob", 1_000)):
        token.mint("owner", account, amount)

    pool = StakingRewards(token, reward_rate=10, owner="owner", clock=clock)

    # Fund the reward reserve
    token.approve("owner", pool.address, 50_000)
    await pool.fund_rewards("owner", 50_000)

    # Alice stakes alone for 10 seconds
    token.approve("alice", pool.address, 100)
    await pool.stake("alice", 100)
    clock.advance(10)

    # Bob joins; the stream is now split in half
    token.approve("bob", pool.address, 100)
    await pool.stake("bob", 100)
    clock.advance(10)

    print(f"alice earned: {pool.earned('alice')}")  # 150
    print(f"bob earned:   {pool.earned('bob')}")    # 50

    paid = await pool.claim_rewards("alice")
    print(f"alice claimed {paid}, wallet now {token.balance_of('alice')}")

    return pool


async def example_receipt_transfer():
    """Example: moving receipt tokens moves stake and future rewards."""

    clock = ManualClock()
    token = FungibleToken("Stake Token", "STK", decimals=0, deployer="owner")
    token.mint("owner", "owner", 10_000)
    token.mint("owner", "alice", 500)

    pool = StakingRewards(token, reward_rate=4, owner="owner", clock=clock)
    token.approve("owner", pool.address, 10_000)
    await pool.fund_rewards("owner", 10_000)

    token.approve("alice", pool.address, 200)
    await pool.stake("alice", 200)
    clock.advance(5)

    await pool.transfer_receipt("alice", "carol", 200)
    clock.advance(5)

    print(f"alice earned: {pool.earned('alice')}, staked {pool.staked_balance('alice')}")
    print(f"carol earned: {pool.earned('carol')}, staked {pool.staked_balance('carol')}")

    return pool


async def main():
    print("=== Two stakers ===")
    await example_two_stakers()
    print()
    print("=== Receipt transfer ===")
    await example_receipt_transfer()


if __name__ == '__main__':
    asyncio.run(main())
