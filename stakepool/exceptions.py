"""
StakePool Exceptions

Base exception classes shared by the ledger, custody and staking layers.
Module-specific errors (token, staking) derive from these.
"""


class StakePoolException(Exception):
    """Base exception for StakePool."""
    pass


class InvalidAmountError(StakePoolException):
    """Amount is zero, negative or otherwise not allowed."""
    pass


class ClockError(StakePoolException):
    """Time source was asked to move backwards."""
    pass


class ConfigurationError(StakePoolException):
    """Configuration error."""
    pass
