"""
Peer identity resolution and flow grouping for network policy generators.

A flow's peer IP is resolved to a service, then a pod, and otherwise
treated as external. Flows are grouped into one rule per unique peer
carrying every protocol/port pair observed for that peer.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

from advisor.broker import BrokerCancelledError, BrokerClient, BrokerError
from advisor.models import FlowRecord, TrafficDirection

NAMESPACE_LABEL = "kubernetes.io/metadata.name"


class PeerKind(Enum):
    """What a peer IP resolved to."""

    SERVICE = "service"
    POD = "pod"
    EXTERNAL = "external"


@dataclass(frozen=True)
class PeerIdentity:
    """Resolved identity of a flow peer."""

    ip: str
    kind: PeerKind = PeerKind.EXTERNAL
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Grouping key: one rule is produced per key."""
        if self.kind is PeerKind.EXTERNAL:
            return f"ip-{self.ip}"
        return f"{self.kind.value}-{self.namespace or 'default'}-{self.name}"

    @property
    def cidr(self) -> str:
        return f"{self.ip}/128" if ":" in self.ip else f"{self.ip}/32"


@dataclass
class PeerRule:
    """All ports observed for one peer in one direction."""

    peer: PeerIdentity
    ports: list[tuple[str, str]] = field(default_factory=list)

    def add_port(self, protocol: str, port: str) -> None:
        entry = (protocol, port)
        if entry not in self.ports:
            self.ports.append(entry)


class PeerResolver:
    """
    Resolves peer IPs through the broker.

    Results are cached per resolver; create one per generation call.
    Cancellation is propagated, other lookup failures make the peer
    external.
    """

    def __init__(
        self,
        broker: BrokerClient | None,
        logger: logging.Logger | None = None,
        cancel: threading.Event | None = None,
    ):
        self._broker = broker
        self._cancel = cancel
        self._log = logger or logging.getLogger(__name__)
        self._cache: dict[str, PeerIdentity] = {}

    def resolve(self, ip: str) -> PeerIdentity:
        if ip not in self._cache:
            self._cache[ip] = self._resolve(ip)
        return self._cache[ip]

    def _resolve(self, ip: str) -> PeerIdentity:
        if self._broker is None:
            return PeerIdentity(ip=ip)

        try:
            svc = self._broker.fetch_service_spec(ip, cancel=self._cancel)
            if svc.is_found and svc.value.name:
                return PeerIdentity(
                    ip=ip,
                    kind=PeerKind.SERVICE,
                    name=svc.value.name,
                    namespace=svc.value.namespace,
                    labels=svc.value.selector() or {"app": svc.value.name},
                )
        except BrokerCancelledError:
            raise
        except BrokerError as e:
            self._log.debug(f"Service lookup for {ip} failed: {e}")

        try:
            pod = self._broker.fetch_pod_spec(ip, cancel=self._cancel)
            if pod.is_found and pod.value.name:
                return PeerIdentity(
                    ip=ip,
                    kind=PeerKind.POD,
                    name=pod.value.name,
                    namespace=pod.value.namespace,
                    labels=pod.value.selector_labels(),
                )
        except BrokerCancelledError:
            raise
        except BrokerError as e:
            self._log.debug(f"Pod lookup for {ip} failed: {e}")

        return PeerIdentity(ip=ip)


def group_flows(
    flows: list[FlowRecord],
    resolver: PeerResolver,
) -> dict[TrafficDirection, list[PeerRule]]:
    """
    Group flows into per-peer rules for each direction.

    INGRESS rules carry the target pod's port, EGRESS rules the peer's
    port. Flows without a peer IP or a direction are skipped. Peers keep
    the order in which they were first observed.
    """
    grouped: dict[TrafficDirection, dict[str, PeerRule]] = {
        TrafficDirection.INGRESS: {},
        TrafficDirection.EGRESS: {},
    }

    for flow in flows:
        if not flow.peer_ip or flow.direction is None:
            continue
        peer = resolver.resolve(flow.peer_ip)
        rules = grouped[flow.direction]
        rule = rules.setdefault(peer.key, PeerRule(peer=peer))
        rule.add_port(flow.protocol, flow.rule_port)

    return {direction: list(rules.values()) for direction, rules in grouped.items()}


def port_value(port: str) -> int | str:
    """Numeric ports as int, named ports unchanged."""
    return int(port) if port.isdigit() else port
