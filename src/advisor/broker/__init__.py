"""
Broker data access for kguardian advisor.

Fetches pod traffic, syscalls, pod specs and service specs from the
broker, separating "not known yet" from "system broken".
"""

from advisor.broker.base import (
    BrokerCancelledError,
    BrokerDecodeError,
    BrokerError,
    BrokerTransportError,
    LookupResult,
    LookupStatus,
    SyscallsNotFoundError,
    TrafficNotFoundError,
)
from advisor.broker.client import DEFAULT_BROKER_URL, DEFAULT_TIMEOUT, BrokerClient

__all__ = [
    "BrokerCancelledError",
    "BrokerClient",
    "BrokerDecodeError",
    "BrokerError",
    "BrokerTransportError",
    "DEFAULT_BROKER_URL",
    "DEFAULT_TIMEOUT",
    "LookupResult",
    "LookupStatus",
    "SyscallsNotFoundError",
    "TrafficNotFoundError",
]
