"""
External Asset Custody

The pool's escrow of an external fungible asset. Deposits and funding are
pulled through the depositor's allowance (the pool is the spender);
withdrawals and reward payouts are pushed from the pool's own balance.
"""

from ..logger import get_logger
from ..tokens.ledger import FungibleToken, InsufficientBalanceError

logger = get_logger(__name__)


class Custody:
    """Holds *token* in the account *holder* on behalf of depositors."""

    def __init__(self, token: FungibleToken, holder: str):
        self.token = token
        self.holder = holder

    @property
    def balance(self) -> int:
        return self.token.balance_of(self.holder)

    def require_available(self, amount: int) -> None:
        """Fail before any ledger mutation if a push could not be covered."""
        if self.balance < amount:
            raise InsufficientBalanceError(
                f"insufficient balance: custody {self.holder} holds {self.balance} "
                f"{self.token.symbol} < {amount}"
            )

    def pull(self, owner: str, amount: int) -> None:
        """
        Move *amount* from *owner* into custody using the holder's allowance.

        Raises:
            InvalidAmountError: amount is not positive
            InsufficientAllowanceError: owner approved less than amount
            InsufficientBalanceError: owner holds less than amount
        """
        self.token.transfer_from(self.holder, owner, self.holder, amount)
        logger.debug(f"Custody pull: {owner} → {self.holder} {amount} {self.token.symbol}")

    def push(self, recipient: str, amount: int) -> None:
        """Release *amount* from custody to *recipient*. Zero is a no-op."""
        if amount == 0:
            return
        self.token.transfer(self.holder, recipient, amount)
        logger.debug(f"Custody push: {self.holder} → {recipient} {amount} {self.token.symbol}")

    def __repr__(self) -> str:
        return f"<Custody {self.token.symbol} holder={self.holder} balance={self.balance}>"
