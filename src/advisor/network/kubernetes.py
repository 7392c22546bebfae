"""
Kubernetes NetworkPolicy generator.

Produces a networking.k8s.io/v1 NetworkPolicy selecting the target
pod, with one ingress or egress rule per observed peer.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from advisor.broker import BrokerClient
from advisor.models import FlowRecord, PodContext, TrafficDirection
from advisor.network.base import PolicyGenerator, PolicyType
from advisor.network.peers import (
    NAMESPACE_LABEL,
    PeerIdentity,
    PeerKind,
    PeerResolver,
    PeerRule,
    group_flows,
    port_value,
)


class KubernetesPolicyGenerator(PolicyGenerator):
    """
    Generates native Kubernetes NetworkPolicies.

    Peers resolved to a service or pod are selected by labels, with a
    namespace selector when they live in another namespace. Unresolved
    peers are allowed by a /32 ipBlock. A pod with no observed traffic
    gets a baseline policy with no rules.
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
        return PolicyType.KUBERNETES

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

        ingress = [
            self._rule(rule, "from", namespace)
            for rule in grouped[TrafficDirection.INGRESS]
        ]
        egress = [
            self._rule(rule, "to", namespace)
            for rule in grouped[TrafficDirection.EGRESS]
        ]

        policy_types = []
        if ingress:
            policy_types.append("Ingress")
        if egress:
            policy_types.append("Egress")

        spec: dict[str, Any] = {
            "podSelector": {"matchLabels": pod_context.selector_labels()},
            "policyTypes": policy_types,
        }
        if ingress:
            spec["ingress"] = ingress
        if egress:
            spec["egress"] = egress

        return {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "NetworkPolicy",
            "metadata": {
                "name": f"{pod_context.identity or pod_name}-policy",
                "namespace": namespace,
            },
            "spec": spec,
        }

    def _rule(self, rule: PeerRule, peer_key: str, namespace: str) -> dict[str, Any]:
        entry: dict[str, Any] = {peer_key: [self._peer(rule.peer, namespace)]}
        ports = []
        for protocol, port in rule.ports:
            item: dict[str, Any] = {"protocol": protocol}
            if port:
                item["port"] = port_value(port)
            ports.append(item)
        if ports:
            entry["ports"] = ports
        return entry

    def _peer(self, peer: PeerIdentity, namespace: str) -> dict[str, Any]:
        if peer.kind is PeerKind.EXTERNAL:
            return {"ipBlock": {"cidr": peer.cidr}}

        result: dict[str, Any] = {
            "podSelector": {"matchLabels": peer.labels or {"app": peer.name}},
        }
        if peer.namespace and peer.namespace != namespace:
            result["namespaceSelector"] = {
                "matchLabels": {NAMESPACE_LABEL: peer.namespace},
            }
        return result
