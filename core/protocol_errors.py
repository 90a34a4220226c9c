"""
Error types for the Elastic Dollar model.

Every failure raised by the model is a ValueError subclass carrying a
descriptive message, so callers that only care about "the operation was
rejected" can keep catching ValueError.
"""


class PreconditionError(ValueError):
    """Raised when an operation is called in a state that does not allow it."""
    pass


class InsufficientBalanceError(ValueError):
    """Raised when a staged, bonded, debt, redeemable or token balance would underflow."""
    pass


class InconsistentBalancesError(ValueError):
    """Raised when the DAO holds fewer tokens than it owes to stakers and redeemers."""
    pass


class ConfigurationError(ValueError):
    """Raised when protocol parameters are out of range."""
    pass
