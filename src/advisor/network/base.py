"""
Network policy generation interfaces for kguardian advisor.

Defines the policy type enumeration, the generator interface each
strategy implements, the configuration surface the dispatcher consumes,
and the policy error hierarchy.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Protocol

from advisor.models import FlowRecord, PodContext


class PolicyType(Enum):
    """Supported network policy flavours."""

    KUBERNETES = "kubernetes"
    CILIUM = "cilium"

    @classmethod
    def token(cls, value: PolicyType | str) -> str:
        """Normalize a policy type or raw token to its string token."""
        if isinstance(value, PolicyType):
            return value.value
        return str(value).strip().lower()


class PolicyError(Exception):
    """Exception raised when a policy cannot be produced for a pod."""

    def __init__(
        self,
        message: str,
        pod_name: str | None = None,
        policy_type: str | None = None,
    ):
        self.pod_name = pod_name
        self.policy_type = policy_type
        super().__init__(message)


class PolicyUnavailableError(PolicyError):
    """The pod cannot be identified from broker data or live metadata."""

    pass


class NoGeneratorAvailableError(PolicyError):
    """Neither the requested nor the default policy type is registered."""

    pass


class PolicyGenerationError(PolicyError):
    """A generator failed for the pod."""

    pass


class PolicySerializationError(PolicyError):
    """A generated policy could not be serialized."""

    pass


class RegistryLockedError(PolicyError):
    """A generator was registered after the registry was first used."""

    pass


class ConfigProvider(Protocol):
    """Configuration consumed by the policy output handler."""

    def get_output_dir(self) -> str:
        ...

    def is_dry_run(self) -> bool:
        ...


class PolicyGenerator(ABC):
    """
    Abstract base class for network policy generators.

    A generator turns the observed flows of one pod into a policy
    document for a single policy type.
    """

    @property
    @abstractmethod
    def policy_type(self) -> PolicyType:
        """Policy type this generator produces."""
        pass

    @abstractmethod
    def generate(
        self,
        pod_name: str,
        flows: list[FlowRecord],
        pod_context: PodContext,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        """
        Generate a policy for a pod.

        Args:
            pod_name: Name of the target pod
            flows: Observed flows, possibly empty
            pod_context: Resolved pod identity and spec
            cancel: Optional event that aborts pending broker lookups

        Returns:
            Policy document as a plain dict
        """
        pass
