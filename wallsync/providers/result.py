"""Explicit success/failure values returned by provider calls.

Provider requests never raise for expected failures. They return ``Ok`` or
``Err`` and the retry loop decides what to do from ``Err.kind`` alone.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """How a failed provider call should be treated."""

    RETRYABLE = "retryable"  # network I/O, HTTP 429, HTTP 5xx
    FATAL = "fatal"  # other HTTP 4xx, malformed payloads


class ProviderError(Exception):
    """Raised when an ``Err`` is unwrapped."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status_code: int | None = None
    retry_after: float | None = None

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.RETRYABLE

    def unwrap(self):
        raise ProviderError(self.message, status_code=self.status_code)

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


Result = Union[Ok[T], Err]


def classify_status(status_code: int) -> ErrorKind:
    """Map an HTTP error status to a failure kind."""
    if status_code == 429 or status_code >= 500:
        return ErrorKind.RETRYABLE
    return ErrorKind.FATAL
