"""
CiliumNetworkPolicy generator.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from advisor.broker import BrokerClient
from advisor.models import FlowRecord, PodContext, TrafficDirection
from advisor.network.base import PolicyGenerator, PolicyType
from advisor.network.peers import PeerKind, PeerResolver, PeerRule, group_flows

CILIUM_NAMESPACE_LABEL = "k8s:io.kubernetes.pod.namespace"


class CiliumPolicyGenerator(PolicyGenerator):
    """
    Generates cilium.io/v2 CiliumNetworkPolicies.

    Resolved peers become endpoint selectors, unresolved peers become
    CIDR rules, and observed ports become toPorts entries.
    """

    def __init__(
        self,
        broker: BrokerClient | None = None,
        logger: logging.Logger | None = None,
    ):
        self._broker = broker
        self._log = logger or logging.getLogger(__name__)

    @property
    def policy_type(self) -> PolicyType:
        return PolicyType.CILIUM

    def generate(
        self,
        pod_name: str,
        flows: list[FlowRecord],
        pod_context: PodContext,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        resolver = PeerResolver(self._broker, logger=self._log, cancel=cancel)
        grouped = group_flows(flows, resolver)
        namespace = pod_context.namespace or "default"

        spec: dict[str, Any] = {
            "endpointSelector": {"matchLabels": pod_context.selector_labels()},
        }
        ingress = [
            self._rule(rule, "from", namespace)
            for rule in grouped[TrafficDirection.INGRESS]
        ]
        egress = [
            self._rule(rule, "to", namespace)
            for rule in grouped[TrafficDirection.EGRESS]
        ]
        if ingress:
            spec["ingress"] = ingress
        if egress:
            spec["egress"] = egress

        return {
            "apiVersion": "cilium.io/v2",
            "kind": "CiliumNetworkPolicy",
            "metadata": {
                "name": f"{pod_context.identity or pod_name}-policy",
                "namespace": namespace,
            },
            "spec": spec,
        }

    def _rule(self, rule: PeerRule, prefix: str, namespace: str) -> dict[str, Any]:
        peer = rule.peer
        entry: dict[str, Any] = {}

        if peer.kind is PeerKind.EXTERNAL:
            entry[f"{prefix}CIDR"] = [peer.cidr]
        else:
            labels = dict(peer.labels or {"app": peer.name})
            labels[CILIUM_NAMESPACE_LABEL] = peer.namespace or namespace
            entry[f"{prefix}Endpoints"] = [{"matchLabels": labels}]

        ports = [
            {"port": port, "protocol": protocol}
            for protocol, port in rule.ports
            if port
        ]
        if ports:
            entry["toPorts"] = [{"ports": ports}]
        return entry
