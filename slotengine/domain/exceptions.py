"""
Domain-specific exception hierarchy for the slot engine.

Only malformed input and unknown identifiers are errors. "No availability"
outcomes are regular results and never raised.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(SlotEngineError):
    """Raised when a date, time or configuration value cannot be parsed."""


class InvalidDateRangeError(InvalidInputError):
    """Raised when a requested date range is reversed or too long."""


class NotFoundError(SlotEngineError):
    """Raised when a business, service or employee id is unknown."""
