"""Explicit success/failure values returned by services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced to the request layer."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    ACCOUNT_DISABLED = "account_disabled"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """
    Outcome of a service operation.

    Exactly one of ``value`` (on success) or ``error`` (on failure) is
    meaningful; ``message`` is always safe to show to callers.

    :ivar value: Payload of a successful operation.
    :ivar error: Failure category, ``None`` on success.
    :ivar message: Caller-safe description of the failure.
    """

    value: T | None = None
    error: ErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> Result[T]:
        return cls(error=error, message=message)
