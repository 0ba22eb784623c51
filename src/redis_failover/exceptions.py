"""Exception classes for the failover sink.

All library exceptions inherit from ``FailoverError`` so hosts can catch a
single base class.

Exception classes support two patterns:
1. No-argument raise: raise WriteError()
2. Contextual attributes: err = WriteError(endpoint=ep, generation=3); raise err
"""

from typing import Any


class FailoverError(Exception):
    """Base exception for all failover errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Failover error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class ConfigurationError(FailoverError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Configuration is invalid or missing"
        super().__init__(message, **kwargs)

    @classmethod
    def invalid_format(cls, param_name: str, received_value: str, expected_format: str = "") -> "ConfigurationError":
        """Create error for invalid format."""
        msg = f"{param_name} has invalid format (received {received_value!r})"
        if expected_format:
            msg += f". Expected {expected_format}"
        return cls(msg)

    @classmethod
    def missing_value(cls, param_name: str, context: str = "") -> "ConfigurationError":
        """Create error for missing value."""
        msg = f"{param_name} is missing or empty"
        if context:
            msg += f": {context}"
        return cls(msg)

    @classmethod
    def invalid_value(cls, param_name: str, value, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg)


class EndpointConnectionError(FailoverError):
    """Connecting to a single endpoint failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Connecting to endpoint failed"
        super().__init__(message, **kwargs)


class WriteError(FailoverError):
    """Writing a record over the live connection failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Writing record failed"
        super().__init__(message, **kwargs)


class NotConnectedError(FailoverError):
    """No live connection is available for writing."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "No live connection"
        super().__init__(message, **kwargs)


class ExhaustionError(FailoverError):
    """Every endpoint failed and the retry budget is spent."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "All endpoints failed and the retry budget is spent"
        super().__init__(message, **kwargs)


class RecordEncodingError(FailoverError):
    """Record cannot be encoded for the wire."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Record cannot be encoded"
        super().__init__(message, **kwargs)


__all__ = [
    "ConfigurationError",
    "EndpointConnectionError",
    "ExhaustionError",
    "FailoverError",
    "NotConnectedError",
    "RecordEncodingError",
    "WriteError",
]
