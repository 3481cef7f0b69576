"""
Exceptions raised by the PredictionIO client SDK.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .connection import Response


class PredictionIOError(Exception):
    """Base class for all SDK errors."""


class InvalidArgumentError(PredictionIOError, ValueError):
    """Raised when a call is made with arguments the service cannot accept."""

    def __init__(self, argument: str, message: str):
        self.argument = argument
        super().__init__(message)


class NotCreatedError(PredictionIOError):
    """Raised when an event is not created after a synchronous API call."""

    def __init__(self, response: "Response"):
        self.response = response
        super().__init__(
            f"Event not created (status {response.status_code}): {response.text}"
        )


class RequestTimeoutError(PredictionIOError):
    """Raised when a request still fails after every retry."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Request failed after {attempts} attempt(s): {last_error}"
        )


class ServerError(PredictionIOError):
    """Exception raised when server returns an error."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Server error {status_code}: {message}")
