"""
StakePool Scenario Simulation

Replays a scripted sequence of pool operations against a ``ManualClock`` and
reports each account's position at the end. Scenarios are TOML files:

    funder = "owner"
    funding = 50000
    end = 20

    [accounts]
    owner = 100000
    alice = 1000

    [[steps]]
    at = 0
    action = "stake"
    account = "alice"
    amount = 100

Step times are seconds from the start and must not decrease. Stake and fund
steps approve the pool for exactly the step amount before executing.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from .clock import ManualClock
from .config.loader import StakePoolConfig, as_int, as_str, build_pool
from .exceptions import ConfigurationError
from .logger import get_logger
from .staking.engine import StakingRewards
from .staking.types import PoolSnapshot
from .tokens.ledger import FungibleToken

logger = get_logger(__name__)

ACTIONS = ("stake", "withdraw", "claim", "exit", "fund", "set_rate", "transfer")


@dataclass
class Step:
    at: int
    action: str
    account: str
    amount: int = 0
    to: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Each step must be a table, got {data!r}")
        action = data.get("action", "")
        if action not in ACTIONS:
            raise ConfigurationError(f"Unknown action {action!r}, expected one of {ACTIONS}")
        step = cls(
            at=as_int(data.get("at", 0), "step.at"),
            action=action,
            account=as_str(data.get("account", ""), "step.account"),
            amount=as_int(data.get("amount", 0), "step.amount"),
            to=as_str(data.get("to", ""), "step.to"),
        )
        if not step.account:
            raise ConfigurationError(f"Step at t={step.at} has no account")
        if step.action == "transfer" and not step.to:
            raise ConfigurationError(f"Transfer step at t={step.at} has no 'to'")
        return step


@dataclass
class Scenario:
    accounts: Dict[str, int] = field(default_factory=dict)
    steps: List[Step] = field(default_factory=list)
    funder: str = ""
    funding: int = 0
    end: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scenario":
        raw_steps = data.get("steps", [])
        if not isinstance(raw_steps, list):
            raise ConfigurationError("steps must be an array of tables")
        steps = [Step.from_dict(s) for s in raw_steps]
        for prev, cur in zip(steps, steps[1:]):
            if cur.at < prev.at:
                raise ConfigurationError(
                    f"Steps must be in time order: t={cur.at} after t={prev.at}"
                )
        end = data.get("end")
        if end is not None:
            end = as_int(end, "end")
        if end is not None and steps and end < steps[-1].at:
            raise ConfigurationError(f"end={end} is before the last step at t={steps[-1].at}")
        accounts = data.get("accounts", {})
        if not isinstance(accounts, dict):
            raise ConfigurationError("[accounts] must be a table of balances")
        return cls(
            accounts={k: as_int(v, f"accounts.{k}") for k, v in accounts.items()},
            steps=steps,
            funder=as_str(data.get("funder", ""), "funder"),
            funding=as_int(data.get("funding", 0), "funding"),
            end=end,
        )

    @classmethod
    def from_file(cls, path: str) -> "Scenario":
        p = Path(path)
        if not p.exists():
            raise ConfigurationError(f"Scenario file not found: {path}")
        with open(p, "rb") as f:
            try:
                return cls.from_dict(tomli.load(f))
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


@dataclass
class AccountReport:
    account: str
    wallet: int
    staked: int
    earned: int
    claimed: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "wallet": self.wallet,
            "staked": self.staked,
            "earned": self.earned,
            "claimed": self.claimed,
        }


@dataclass
class SimulationReport:
    accounts: List[AccountReport]
    pool: PoolSnapshot
    events: int
    decimals: int = 0

    def account(self, name: str) -> AccountReport:
        for report in self.accounts:
            if report.account == name:
                return report
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accounts": [a.to_dict() for a in self.accounts],
            "pool": self.pool.to_dict(),
            "events": self.events,
        }


async def _apply(engine: StakingRewards, token: FungibleToken, step: Step) -> None:
    if step.action == "stake":
        token.approve(step.account, engine.address, step.amount)
        await engine.stake(step.account, step.amount)
    elif step.action == "withdraw":
        await engine.withdraw(step.account, step.amount)
    elif step.action == "claim":
        await engine.claim_rewards(step.account)
    elif step.action == "exit":
        await engine.exit(step.account)
    elif step.action == "fund":
        token.approve(step.account, engine.address, step.amount)
        await engine.fund_rewards(step.account, step.amount)
    elif step.action == "set_rate":
        await engine.set_reward_rate(step.account, step.amount)
    elif step.action == "transfer":
        await engine.transfer_receipt(step.account, step.to, step.amount)


async def run_scenario(
    scenario: Scenario,
    config: Optional[StakePoolConfig] = None,
) -> SimulationReport:
    """Replay *scenario* on a fresh pool and report the final state."""
    config = config or StakePoolConfig()
    clock = ManualClock(0)

    token = FungibleToken(
        name=config.token.name,
        symbol=config.token.symbol,
        decimals=config.token.decimals,
        deployer=config.pool.owner,
    )
    for account, balance in scenario.accounts.items():
        if balance > 0:
            token.mint(config.pool.owner, account, balance)

    engine = build_pool(config, token, clock=clock)

    if scenario.funding > 0:
        funder = scenario.funder or config.pool.owner
        token.approve(funder, engine.address, scenario.funding)
        await engine.fund_rewards(funder, scenario.funding)

    for step in scenario.steps:
        clock.set(step.at)
        logger.debug(f"[t={step.at}] {step.action} {step.account} {step.amount}")
        await _apply(engine, token, step)

    if scenario.end is not None:
        clock.set(scenario.end)

    names = list(scenario.accounts)
    for name in engine.participants:
        if name not in names:
            names.append(name)

    accounts = [
        AccountReport(
            account=name,
            wallet=token.balance_of(name),
            staked=engine.staked_balance(name),
            earned=engine.earned(name),
            claimed=engine.total_claimed_by(name),
        )
        for name in names
    ]
    return SimulationReport(
        accounts=accounts,
        pool=engine.snapshot(),
        events=len(engine.events),
        decimals=config.token.decimals,
    )
