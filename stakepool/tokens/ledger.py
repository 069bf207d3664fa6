"""
Fungible Ledger

Implements a Python-native fungible token with:
  - ERC-20–style interface (transfer, approve, transfer_from, balance_of)
  - Integer balances with a conserved total supply
  - Operator-gated mint / burn hooks
  - Transfer / Approval event log
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from ..constants import TOKEN_DEFAULT_DECIMALS, TOKEN_MAX_DECIMALS, ZERO_ADDRESS
from ..exceptions import InvalidAmountError, StakePoolException
from ..logger import get_logger

logger = get_logger(__name__)


def require_int(value: Any, what: str = "Amount") -> None:
    """Amounts are whole base units; bool, float and Decimal are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"{what} must be an integer, got {value!r}")


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(StakePoolException):
    """Base exception for ledger operations."""


class InsufficientBalanceError(TokenError):
    """Raised when a holder's balance is too low for a debit."""


class InsufficientAllowanceError(TokenError):
    """Raised when a spender's allowance is too low."""


class UnauthorizedMinterError(TokenError):
    """Raised when a non-minter tries to mint or burn."""


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every balance movement, including mint and burn."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int

    @property
    def is_mint(self) -> bool:
        return self.sender == ZERO_ADDRESS

    @property
    def is_burn(self) -> bool:
        return self.recipient == ZERO_ADDRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted on every successful approve."""
    token_symbol: str
    owner: str
    spender: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "amount": self.amount,
        }


# ══════════════════════════════════════════════════════════════════════
#  FUNGIBLE TOKEN
# ══════════════════════════════════════════════════════════════════════

class FungibleToken:
    """
    Fungible token ledger.

    Mirrors ERC-20 semantics:
        - balance_of(address) → int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, owner, recipient, amount)
        - total_supply → int

    Additional hooks:
        - mint / burn (minter-only)

    Every check runs before the first write, so a failed call leaves
    balances, allowances and supply untouched.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int = TOKEN_DEFAULT_DECIMALS,
        total_supply: int = 0,
        deployer: str = "",
    ):
        """
        Args:
            name: Human-readable token name
            symbol: Short ticker (e.g. "STK")
            decimals: Fractional digits (display only)
            total_supply: Initial minted supply, credited to *deployer*
            deployer: Address of deploying account, registered as minter
        """
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if decimals < 0 or decimals > TOKEN_MAX_DECIMALS:
            raise TokenError(f"Decimals must be 0-{TOKEN_MAX_DECIMALS}, got {decimals}")
        require_int(total_supply, "Total supply")
        if total_supply < 0:
            raise TokenError("Total supply cannot be negative")
        if total_supply > 0 and not deployer:
            raise TokenError("Initial supply requires a deployer")

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.deployer = deployer
        self._total_supply = total_supply

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._events: List[Any] = []
        self._minters: Set[str] = set()

        if deployer:
            self._minters.add(deployer)
        if total_supply > 0:
            self._balances[deployer] = total_supply

        logger.info(f"Token deployed: {symbol} ({name}), supply={total_supply}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def holders(self) -> Dict[str, int]:
        """Non-zero balances by address."""
        return {a: b for a, b in self._balances.items() if b > 0}

    def is_minter(self, address: str) -> bool:
        return address in self._minters

    # ── Guards ────────────────────────────────────────────────────────

    @staticmethod
    def _require_positive(amount: int, what: str = "Transfer"):
        require_int(amount, f"{what} amount")
        if amount <= 0:
            raise InvalidAmountError(f"{what} amount must be positive, got {amount}")

    def _require_balance(self, holder: str, amount: int, what: str = "transfer"):
        bal = self.balance_of(holder)
        if bal < amount:
            raise InsufficientBalanceError(
                f"insufficient balance: {holder} has {bal} < {what} amount {amount}"
            )

    def _require_allowance(self, owner: str, spender: str, amount: int):
        allow = self.allowance(owner, spender)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"insufficient allowance: {spender} may spend {allow} of {owner} < {amount}"
            )

    def _require_minter(self, address: str):
        if address not in self._minters:
            raise UnauthorizedMinterError(f"{address} is not an authorized minter of {self.symbol}")

    # ── Balance movement ──────────────────────────────────────────────

    def _before_move(self, sender: str, recipient: str, amount: int) -> None:
        """Called after validation, before a holder-to-holder move. No-op here."""

    def _move(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        self._before_move(sender, recipient, amount)
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=sender,
            recipient=recipient,
            amount=amount,
        )
        self._events.append(event)
        return event

    # ── Core ERC-20 operations ────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        """
        Move *amount* from *sender* to *recipient*.

        Raises:
            InvalidAmountError: amount is not positive
            InsufficientBalanceError: sender cannot cover amount
        """
        self._require_positive(amount)
        if sender == recipient:
            raise TokenError("Cannot transfer to self")
        self._require_balance(sender, amount)

        event = self._move(sender, recipient, amount)
        logger.debug(f"Transfer: {sender} → {recipient} {amount} {self.symbol}")
        return event

    def approve(self, owner: str, spender: str, amount: int) -> ApprovalEvent:
        """Set *spender*'s cap over *owner*'s balance (overwrites)."""
        require_int(amount, "Allowance amount")
        if amount < 0:
            raise InvalidAmountError("Allowance amount cannot be negative")

        self._allowances[(owner, spender)] = amount

        event = ApprovalEvent(
            token_symbol=self.symbol,
            owner=owner,
            spender=spender,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Approve: {owner} → {spender} allowance={amount} {self.symbol}")
        return event

    def transfer_from(
        self,
        spender: str,
        owner: str,
        recipient: str,
        amount: int,
    ) -> TransferEvent:
        """
        Move *amount* of *owner*'s balance to *recipient* using *spender*'s
        allowance. The allowance is checked before the balance.
        """
        self._require_positive(amount)
        if owner == recipient:
            raise TokenError("Cannot transfer to self")
        self._require_allowance(owner, spender, amount)
        self._require_balance(owner, amount)

        self._allowances[(owner, spender)] = self.allowance(owner, spender) - amount
        event = self._move(owner, recipient, amount)
        logger.debug(
            f"transferFrom: spender={spender} {owner} → {recipient} {amount} {self.symbol}"
        )
        return event

    # ── Mint / burn ───────────────────────────────────────────────────

    def add_minter(self, address: str):
        """Authorize an address to mint/burn."""
        self._minters.add(address)
        logger.info(f"Minter added: {address} for {self.symbol}")

    def remove_minter(self, address: str):
        self._minters.discard(address)

    def mint(self, operator: str, recipient: str, amount: int) -> TransferEvent:
        """Create *amount* new units for *recipient*."""
        self._require_minter(operator)
        self._require_positive(amount, "Mint")

        self._total_supply += amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=ZERO_ADDRESS,
            recipient=recipient,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Mint: {amount} {self.symbol} → {recipient}")
        return event

    def burn(self, operator: str, holder: str, amount: int) -> TransferEvent:
        """Destroy *amount* units held by *holder*."""
        self._require_minter(operator)
        self._require_positive(amount, "Burn")
        self._require_balance(holder, amount, "burn")

        self._balances[holder] = self.balance_of(holder) - amount
        self._total_supply -= amount

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=holder,
            recipient=ZERO_ADDRESS,
            amount=amount,
        )
        self._events.append(event)
        logger.debug(f"Burn: {holder} burned {amount} {self.symbol}")
        return event

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "totalSupply": self._total_supply,
            "deployer": self.deployer,
            "holders": len(self.holders()),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.symbol} supply={self._total_supply}>"


def format_units(amount: int, decimals: Optional[int] = None) -> str:
    """Render a raw integer amount with *decimals* fractional digits."""
    if not decimals:
        return str(amount)
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_str}" if frac_str else f"{sign}{whole}"
