"""
Broker error taxonomy and lookup results for kguardian advisor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class BrokerError(Exception):
    """Exception raised for broker data access failures."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class TrafficNotFoundError(BrokerError):
    """The broker has no traffic recorded for the pod."""

    pass


class SyscallsNotFoundError(BrokerError):
    """The broker has no syscalls recorded for the pod."""

    pass


class BrokerTransportError(BrokerError):
    """The request could not be completed (connection, timeout, bad status)."""

    pass


class BrokerDecodeError(BrokerError):
    """The broker response could not be decoded."""

    pass


class BrokerCancelledError(BrokerError):
    """The request was cancelled before it was sent."""

    pass


class LookupStatus(Enum):
    """Outcome of a lookup that may legitimately find nothing."""

    FOUND = "found"
    ABSENT = "absent"


@dataclass(frozen=True)
class LookupResult(Generic[T]):
    """
    Tagged result of a spec lookup.

    A lookup either finds a value or reports it absent; failures are
    raised as BrokerError rather than folded into the result.
    """

    status: LookupStatus
    value: T | None = None

    @classmethod
    def found(cls, value: T) -> LookupResult[T]:
        return cls(status=LookupStatus.FOUND, value=value)

    @classmethod
    def absent(cls) -> LookupResult[T]:
        return cls(status=LookupStatus.ABSENT)

    @property
    def is_found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @property
    def is_absent(self) -> bool:
        return self.status is LookupStatus.ABSENT
