"""
StakePool Token Ledgers

Provides:
  - FungibleToken : ERC-20–style ledger with allowances and minter-gated supply
  - ReceiptToken  : Pool-controlled receipt for staked principal
"""

from .ledger import (
    FungibleToken,
    TransferEvent,
    ApprovalEvent,
    TokenError,
    InsufficientBalanceError,
    InsufficientAllowanceError,
    UnauthorizedMinterError,
    format_units,
    require_int,
)
from .receipt import ReceiptToken

__all__ = [
    "FungibleToken",
    "ReceiptToken",
    "TransferEvent",
    "ApprovalEvent",
    "TokenError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
    "UnauthorizedMinterError",
    "format_units",
    "require_int",
]
