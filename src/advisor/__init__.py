"""
kguardian advisor - security policies from observed pod behaviour.

Derives Kubernetes network policies and seccomp profiles for pods from
the traffic and syscalls recorded by the kguardian broker.

Quick Start:
    >>> from advisor.broker import BrokerClient
    >>> from advisor.config import AdvisorConfig
    >>> from advisor.models import LivePod
    >>> from advisor.network import create_policy_service
    >>>
    >>> config = AdvisorConfig(output_dir="policies")
    >>> service = create_policy_service(config, BrokerClient(config.broker_url))
    >>> pod = LivePod(name="web-0", namespace="shop", pod_ip="10.0.0.12")
    >>> artifact = service.generate_policy(pod, "kubernetes")
    >>> print(artifact.text)
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "kguardian"
