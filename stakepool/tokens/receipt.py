"""
Receipt Token

Transferable claim on staked principal. Units are minted 1:1 when a
participant stakes and burned when they withdraw; only the owning pool may
mint or burn. A ``before_transfer`` callback lets the pool settle both
parties' accrued rewards before a holder-to-holder move changes who is
staked.
"""

from typing import Callable, Optional

from ..constants import (
    RECEIPT_DEFAULT_NAME,
    RECEIPT_DEFAULT_SYMBOL,
    TOKEN_DEFAULT_DECIMALS,
    ZERO_ADDRESS,
)
from .ledger import FungibleToken, TokenError, UnauthorizedMinterError

TransferHook = Callable[[str, str, int], None]


class ReceiptToken(FungibleToken):
    """
    Fungible ledger whose supply is controlled by a single pool.

    The receipt balance of an address is that address's staked balance, so
    ``total_supply`` always equals the pool's total staked principal.
    Units can never be held by the pool itself or the zero address.
    """

    def __init__(
        self,
        pool_address: str,
        name: str = RECEIPT_DEFAULT_NAME,
        symbol: str = RECEIPT_DEFAULT_SYMBOL,
        decimals: int = TOKEN_DEFAULT_DECIMALS,
        before_transfer: Optional[TransferHook] = None,
    ):
        super().__init__(
            name=name,
            symbol=symbol,
            decimals=decimals,
            total_supply=0,
            deployer=pool_address,
        )
        self.pool_address = pool_address
        self._before_transfer = before_transfer

    def add_minter(self, address: str):
        # Supply must track pool accounting exactly; no second minter.
        if address != self.pool_address:
            raise UnauthorizedMinterError(f"Only {self.pool_address} may mint {self.symbol}")
        super().add_minter(address)

    def _require_holder(self, address: str) -> None:
        if address in (self.pool_address, ZERO_ADDRESS):
            raise TokenError(f"{address} cannot hold {self.symbol}")

    def mint(self, operator: str, recipient: str, amount: int):
        self._require_holder(recipient)
        return super().mint(operator, recipient, amount)

    def _before_move(self, sender: str, recipient: str, amount: int) -> None:
        self._require_holder(recipient)
        if self._before_transfer is not None:
            self._before_transfer(sender, recipient, amount)
