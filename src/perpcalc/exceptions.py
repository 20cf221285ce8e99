"""Custom exceptions for the trading economics engine.

Recoverable conditions (disabled fee types, zero caps, unlimited OI) are
modeled as neutral values, not exceptions. These types cover the cases a
caller has to act on.
"""


class EngineError(Exception):
    """Base exception for all engine errors."""


class MissingDataError(EngineError):
    """Raised when a keyed parameter or data snapshot is absent for a collateral/pair."""


class ConfigurationError(EngineError):
    """Raised when a structurally required value (e.g. skew depth) is missing."""


class InvalidInputError(EngineError):
    """Raised for nonsensical numeric input such as a zero price in a size conversion."""


class ArithmeticInvariantError(EngineError):
    """Raised when an internal arithmetic invariant does not hold (logic bug)."""
