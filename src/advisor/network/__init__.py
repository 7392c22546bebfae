"""
Network policy generation for kguardian advisor.

PolicyService dispatches to one PolicyGenerator per PolicyType.
Use create_policy_service() for a service with the built-in
Kubernetes and Cilium generators registered.
"""

from __future__ import annotations

import logging

from advisor.broker import BrokerClient
from advisor.network.base import (
    ConfigProvider,
    NoGeneratorAvailableError,
    PolicyError,
    PolicyGenerationError,
    PolicyGenerator,
    PolicySerializationError,
    PolicyType,
    PolicyUnavailableError,
    RegistryLockedError,
)
from advisor.network.cilium import CiliumPolicyGenerator
from advisor.network.kubernetes import KubernetesPolicyGenerator
from advisor.network.service import PolicyService


def create_policy_service(
    config: ConfigProvider,
    broker: BrokerClient,
    default_type: PolicyType | str = PolicyType.KUBERNETES,
    logger: logging.Logger | None = None,
) -> PolicyService:
    """Create a PolicyService with all built-in generators registered."""
    service = PolicyService(config, broker, default_type=default_type, logger=logger)
    service.register_generator(KubernetesPolicyGenerator(broker, logger=logger))
    service.register_generator(CiliumPolicyGenerator(broker, logger=logger))
    return service


__all__ = [
    "CiliumPolicyGenerator",
    "ConfigProvider",
    "KubernetesPolicyGenerator",
    "NoGeneratorAvailableError",
    "PolicyError",
    "PolicyGenerationError",
    "PolicyGenerator",
    "PolicySerializationError",
    "PolicyService",
    "PolicyType",
    "PolicyUnavailableError",
    "RegistryLockedError",
    "create_policy_service",
]
