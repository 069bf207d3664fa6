"""
Token Ledger Test Suite

Coverage:
  - FungibleToken: deploy, transfer, approve, transfer_from, mint, burn,
    events, failure atomicity
  - ReceiptToken: pool-only supply, transfer hook ordering
  - Custody: pull through allowance, push, availability guard
  - format_units display helper
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from stakepool.constants import ZERO_ADDRESS
from stakepool.exceptions import InvalidAmountError
from stakepool.staking.custody import Custody
from stakepool.tokens import (
    ApprovalEvent,
    FungibleToken,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    ReceiptToken,
    TokenError,
    TransferEvent,
    UnauthorizedMinterError,
    format_units,
    require_int,
)


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

DEPLOYER = "0x" + "de" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
POOL = "0x" + "5e" * 20


def make_token(supply: int = 1_000_000, decimals: int = 0) -> FungibleToken:
    return FungibleToken(
        name="Test Token",
        symbol="TST",
        decimals=decimals,
        total_supply=supply,
        deployer=DEPLOYER,
    )


# ══════════════════════════════════════════════════════════════════════
#  FUNGIBLE TOKEN
# ══════════════════════════════════════════════════════════════════════


class TestTokenDeploy:
    """Construction and parameter validation."""

    def test_basic_deploy(self):
        t = make_token(supply=500)
        assert t.name == "Test Token"
        assert t.symbol == "TST"
        assert t.total_supply == 500
        assert t.balance_of(DEPLOYER) == 500
        assert t.is_minter(DEPLOYER)

    def test_zero_supply_deploy(self):
        t = make_token(supply=0)
        assert t.total_supply == 0
        assert t.holders() == {}

    def test_empty_name_raises(self):
        with pytest.raises(TokenError, match="name"):
            FungibleToken("", "TST")

    def test_empty_symbol_raises(self):
        with pytest.raises(TokenError, match="symbol"):
            FungibleToken("Test", "")

    def test_bad_decimals_raises(self):
        with pytest.raises(TokenError, match="Decimals"):
            FungibleToken("Test", "TST", decimals=19)

    def test_negative_supply_raises(self):
        with pytest.raises(TokenError):
            FungibleToken("Test", "TST", total_supply=-1, deployer=DEPLOYER)

    def test_supply_without_deployer_raises(self):
        with pytest.raises(TokenError, match="deployer"):
            FungibleToken("Test", "TST", total_supply=10)


class TestTokenTransfer:
    """transfer() semantics."""

    def test_transfer_moves_balance(self):
        t = make_token()
        event = t.transfer(DEPLOYER, ALICE, 250)

        assert isinstance(event, TransferEvent)
        assert t.balance_of(ALICE) == 250
        assert t.balance_of(DEPLOYER) == 1_000_000 - 250
        assert t.total_supply == 1_000_000

    def test_transfer_insufficient_balance(self):
        t = make_token(supply=10)
        with pytest.raises(InsufficientBalanceError, match="insufficient balance"):
            t.transfer(DEPLOYER, ALICE, 11)
        assert t.balance_of(DEPLOYER) == 10
        assert t.balance_of(ALICE) == 0

    def test_transfer_zero_raises(self):
        t = make_token()
        with pytest.raises(InvalidAmountError):
            t.transfer(DEPLOYER, ALICE, 0)

    def test_transfer_to_self_raises(self):
        t = make_token()
        with pytest.raises(TokenError, match="self"):
            t.transfer(DEPLOYER, DEPLOYER, 1)

    def test_transfer_records_event(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 5)
        assert t.events[-1] == TransferEvent("TST", DEPLOYER, ALICE, 5)
        assert t.events[-1].to_dict()["event"] == "Transfer"

    def test_failed_transfer_records_no_event(self):
        t = make_token(supply=1)
        before = len(t.events)
        with pytest.raises(InsufficientBalanceError):
            t.transfer(DEPLOYER, ALICE, 2)
        assert len(t.events) == before


class TestTokenAllowance:
    """approve() / transfer_from()."""

    def test_approve_sets_allowance(self):
        t = make_token()
        event = t.approve(ALICE, BOB, 100)
        assert isinstance(event, ApprovalEvent)
        assert t.allowance(ALICE, BOB) == 100

    def test_approve_overwrites(self):
        t = make_token()
        t.approve(ALICE, BOB, 100)
        t.approve(ALICE, BOB, 30)
        assert t.allowance(ALICE, BOB) == 30

    def test_approve_zero_revokes(self):
        t = make_token()
        t.approve(ALICE, BOB, 100)
        t.approve(ALICE, BOB, 0)
        assert t.allowance(ALICE, BOB) == 0

    def test_approve_negative_raises(self):
        t = make_token()
        with pytest.raises(InvalidAmountError):
            t.approve(ALICE, BOB, -1)

    def test_transfer_from_consumes_allowance(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 500)
        t.approve(ALICE, BOB, 200)

        t.transfer_from(BOB, ALICE, CAROL, 150)

        assert t.balance_of(ALICE) == 350
        assert t.balance_of(CAROL) == 150
        assert t.allowance(ALICE, BOB) == 50

    def test_transfer_from_spender_as_recipient(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 500)
        t.approve(ALICE, POOL, 100)
        t.transfer_from(POOL, ALICE, POOL, 100)
        assert t.balance_of(POOL) == 100
        assert t.allowance(ALICE, POOL) == 0

    def test_transfer_from_exceeds_allowance(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 500)
        t.approve(ALICE, BOB, 50)
        with pytest.raises(InsufficientAllowanceError, match="insufficient allowance"):
            t.transfer_from(BOB, ALICE, CAROL, 51)
        assert t.balance_of(ALICE) == 500
        assert t.allowance(ALICE, BOB) == 50

    def test_allowance_checked_before_balance(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 10)
        # Both allowance and balance are short; allowance is reported.
        with pytest.raises(InsufficientAllowanceError):
            t.transfer_from(BOB, ALICE, CAROL, 100)

    def test_transfer_from_exceeds_balance(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 10)
        t.approve(ALICE, BOB, 100)
        with pytest.raises(InsufficientBalanceError):
            t.transfer_from(BOB, ALICE, CAROL, 11)
        assert t.allowance(ALICE, BOB) == 100


class TestTokenMintBurn:
    """Minter-gated supply changes."""

    def test_mint_increases_supply(self):
        t = make_token(supply=0)
        event = t.mint(DEPLOYER, ALICE, 1_000)
        assert event.is_mint
        assert event.sender == ZERO_ADDRESS
        assert t.total_supply == 1_000
        assert t.balance_of(ALICE) == 1_000

    def test_mint_unauthorized(self):
        t = make_token()
        with pytest.raises(UnauthorizedMinterError):
            t.mint(ALICE, ALICE, 1)

    def test_added_minter_can_mint(self):
        t = make_token(supply=0)
        t.add_minter(POOL)
        t.mint(POOL, ALICE, 5)
        t.remove_minter(POOL)
        with pytest.raises(UnauthorizedMinterError):
            t.mint(POOL, ALICE, 5)

    def test_burn_decreases_supply(self):
        t = make_token(supply=100)
        event = t.burn(DEPLOYER, DEPLOYER, 40)
        assert event.is_burn
        assert t.total_supply == 60

    def test_burn_more_than_held(self):
        t = make_token(supply=100)
        with pytest.raises(InsufficientBalanceError):
            t.burn(DEPLOYER, ALICE, 1)
        assert t.total_supply == 100

    def test_supply_equals_sum_of_balances(self):
        t = make_token(supply=1_000)
        t.transfer(DEPLOYER, ALICE, 300)
        t.mint(DEPLOYER, BOB, 77)
        t.burn(DEPLOYER, ALICE, 50)
        assert sum(t.holders().values()) == t.total_supply == 1_027

    def test_to_dict(self):
        t = make_token(supply=5)
        d = t.to_dict()
        assert d["symbol"] == "TST"
        assert d["totalSupply"] == 5
        assert d["holders"] == 1


class TestIntegerAmounts:
    """Amounts are whole base units."""

    @pytest.mark.parametrize("amount", [0.5, 1.0, True, "5", None])
    def test_transfer_rejects_non_int(self, amount):
        t = make_token()
        with pytest.raises(InvalidAmountError, match="integer"):
            t.transfer(DEPLOYER, ALICE, amount)
        assert t.balance_of(ALICE) == 0

    def test_approve_rejects_float(self):
        t = make_token()
        with pytest.raises(InvalidAmountError, match="integer"):
            t.approve(ALICE, BOB, 2.5)
        assert t.allowance(ALICE, BOB) == 0

    def test_mint_and_burn_reject_float(self):
        t = make_token(supply=100)
        with pytest.raises(InvalidAmountError):
            t.mint(DEPLOYER, ALICE, 1.5)
        with pytest.raises(InvalidAmountError):
            t.burn(DEPLOYER, DEPLOYER, 0.5)
        assert t.total_supply == 100

    def test_transfer_from_rejects_float(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 10)
        t.approve(ALICE, BOB, 10)
        with pytest.raises(InvalidAmountError):
            t.transfer_from(BOB, ALICE, CAROL, 0.5)
        assert t.allowance(ALICE, BOB) == 10

    def test_supply_rejects_float(self):
        with pytest.raises(InvalidAmountError):
            FungibleToken("Test", "TST", total_supply=10.0, deployer=DEPLOYER)

    def test_require_int(self):
        require_int(0)
        require_int(10 ** 30)
        with pytest.raises(InvalidAmountError, match="Stake amount"):
            require_int(False, "Stake amount")


# ══════════════════════════════════════════════════════════════════════
#  RECEIPT TOKEN
# ══════════════════════════════════════════════════════════════════════


class TestReceiptToken:
    """Pool-controlled receipt ledger."""

    def test_only_pool_mints(self):
        r = ReceiptToken(POOL)
        r.mint(POOL, ALICE, 10)
        assert r.total_supply == 10
        with pytest.raises(UnauthorizedMinterError):
            r.mint(ALICE, ALICE, 10)

    def test_second_minter_rejected(self):
        r = ReceiptToken(POOL)
        with pytest.raises(UnauthorizedMinterError):
            r.add_minter(ALICE)

    def test_hook_runs_before_move(self):
        seen = []

        def hook(sender, recipient, amount):
            seen.append((sender, recipient, amount, r.balance_of(sender)))

        r = ReceiptToken(POOL, before_transfer=hook)
        r.mint(POOL, ALICE, 10)
        r.transfer(ALICE, BOB, 4)

        # Balance observed by the hook is the pre-transfer balance.
        assert seen == [(ALICE, BOB, 4, 10)]

    def test_hook_not_called_for_mint_burn_or_failure(self):
        calls = []
        r = ReceiptToken(POOL, before_transfer=lambda *a: calls.append(a))
        r.mint(POOL, ALICE, 10)
        r.burn(POOL, ALICE, 3)
        with pytest.raises(InsufficientBalanceError):
            r.transfer(ALICE, BOB, 100)
        assert calls == []

    def test_hook_failure_aborts_transfer(self):
        def hook(sender, recipient, amount):
            raise RuntimeError("settlement failed")

        r = ReceiptToken(POOL, before_transfer=hook)
        r.mint(POOL, ALICE, 10)
        with pytest.raises(RuntimeError):
            r.transfer(ALICE, BOB, 5)
        assert r.balance_of(ALICE) == 10
        assert r.balance_of(BOB) == 0

    def test_pool_cannot_hold_receipt(self):
        calls = []
        r = ReceiptToken(POOL, before_transfer=lambda *a: calls.append(a))
        r.mint(POOL, ALICE, 10)

        with pytest.raises(TokenError, match="cannot hold"):
            r.transfer(ALICE, POOL, 5)
        with pytest.raises(TokenError, match="cannot hold"):
            r.transfer(ALICE, ZERO_ADDRESS, 5)

        assert calls == []
        assert r.balance_of(ALICE) == 10
        assert r.balance_of(POOL) == 0

    def test_pool_cannot_mint_to_itself(self):
        r = ReceiptToken(POOL)
        with pytest.raises(TokenError, match="cannot hold"):
            r.mint(POOL, POOL, 10)
        assert r.total_supply == 0

    def test_hook_is_fixed_at_construction(self):
        r = ReceiptToken(POOL)
        assert not hasattr(r, "set_transfer_hook")


# ══════════════════════════════════════════════════════════════════════
#  CUSTODY
# ══════════════════════════════════════════════════════════════════════


class TestCustody:
    """Escrow of an external token."""

    def test_pull_requires_allowance(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 100)
        c = Custody(t, POOL)
        with pytest.raises(InsufficientAllowanceError):
            c.pull(ALICE, 10)
        assert c.balance == 0

    def test_pull_and_push(self):
        t = make_token()
        t.transfer(DEPLOYER, ALICE, 100)
        t.approve(ALICE, POOL, 60)
        c = Custody(t, POOL)

        c.pull(ALICE, 60)
        assert c.balance == 60
        assert t.balance_of(ALICE) == 40

        c.push(BOB, 25)
        assert c.balance == 35
        assert t.balance_of(BOB) == 25

    def test_push_zero_is_noop(self):
        t = make_token()
        c = Custody(t, POOL)
        before = len(t.events)
        c.push(ALICE, 0)
        assert len(t.events) == before

    def test_require_available(self):
        t = make_token()
        c = Custody(t, POOL)
        c.require_available(0)
        with pytest.raises(InsufficientBalanceError):
            c.require_available(1)


# ══════════════════════════════════════════════════════════════════════
#  DISPLAY
# ══════════════════════════════════════════════════════════════════════


class TestFormatUnits:

    def test_no_decimals(self):
        assert format_units(1234, 0) == "1234"

    def test_fractional(self):
        assert format_units(1_500_000_000_000_000_000, 18) == "1.5"
        assert format_units(5, 2) == "0.05"

    def test_whole(self):
        assert format_units(300, 2) == "3"

    def test_negative(self):
        assert format_units(-150, 2) == "-1.5"
