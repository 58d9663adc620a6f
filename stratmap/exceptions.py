"""
Custom exceptions for the stratmap cascade engine.
"""


class StratmapError(Exception):
    """Base exception for all stratmap errors."""
    pass


class ValidationError(StratmapError):
    """Raised when validation fails for an item or operation."""
    pass


class NotFoundError(StratmapError):
    """Raised when a requested item is not found."""
    pass


class InvalidOperationError(StratmapError):
    """Raised when an operation is not allowed in the current state."""
    pass


class ConfigurationError(StratmapError):
    """Raised when there's a configuration or setup issue."""
    pass


class StorageError(StratmapError):
    """Raised when the item store cannot read or write its data."""
    pass


class InvariantViolationError(StratmapError):
    """Raised when a cascade chain in the store is corrupt.

    Examples: a cascaded item whose parent is missing, a parent with more
    than one cascaded child, or a chain deeper than yearly -> daily.
    """
    pass


class CalendarComputationError(StratmapError):
    """Raised for out-of-range calendar inputs (year, month, week, date key)."""
    pass
