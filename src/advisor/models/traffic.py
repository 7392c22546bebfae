"""
Observed traffic and syscall records for kguardian advisor.

Records are produced by the broker and are read-only to the policy
pipeline. Direction is always relative to the target pod, never the peer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TrafficDirection(Enum):
    """Direction of a flow relative to the target pod."""

    INGRESS = "INGRESS"
    EGRESS = "EGRESS"

    @classmethod
    def parse(cls, value: str | None) -> TrafficDirection | None:
        """Parse a broker traffic_type token, case-insensitively."""
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


DEFAULT_PROTOCOL = "TCP"


@dataclass(frozen=True)
class FlowRecord:
    """
    One observed directional connection for a target pod.

    Attributes:
        uuid: Broker identifier of the record
        pod_name: Name of the target pod
        pod_ip: IP of the target pod
        pod_namespace: Namespace of the target pod
        pod_port: Port on the target pod (meaningful for INGRESS)
        direction: INGRESS or EGRESS relative to the target pod
        peer_ip: IP of the remote entity
        peer_port: Port on the remote entity (meaningful for EGRESS)
        protocol: Transport protocol token (TCP, UDP, SCTP)
    """

    pod_name: str = ""
    pod_ip: str = ""
    pod_namespace: str = ""
    pod_port: str = ""
    direction: TrafficDirection | None = None
    peer_ip: str = ""
    peer_port: str = ""
    protocol: str = DEFAULT_PROTOCOL
    uuid: str = ""

    @property
    def is_ingress(self) -> bool:
        return self.direction is TrafficDirection.INGRESS

    @property
    def is_egress(self) -> bool:
        return self.direction is TrafficDirection.EGRESS

    @property
    def rule_port(self) -> str:
        """
        Port that a generated rule should allow.

        INGRESS rules open the target pod's port; EGRESS rules open the
        peer's port.
        """
        if self.is_ingress:
            return self.pod_port
        if self.is_egress:
            return self.peer_port
        return ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to the broker's wire representation."""
        return {
            "uuid": self.uuid,
            "pod_name": self.pod_name,
            "pod_ip": self.pod_ip,
            "pod_namespace": self.pod_namespace,
            "pod_port": self.pod_port,
            "traffic_type": self.direction.value if self.direction else None,
            "traffic_in_out_ip": self.peer_ip,
            "traffic_in_out_port": self.peer_port,
            "ip_protocol": self.protocol,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FlowRecord:
        """Create from a broker pod traffic record."""
        return cls(
            uuid=str(data.get("uuid") or ""),
            pod_name=data.get("pod_name") or "",
            pod_ip=data.get("pod_ip") or "",
            pod_namespace=data.get("pod_namespace") or "",
            pod_port=str(data.get("pod_port") or ""),
            direction=TrafficDirection.parse(data.get("traffic_type")),
            peer_ip=data.get("traffic_in_out_ip") or "",
            peer_port=str(data.get("traffic_in_out_port") or ""),
            protocol=(data.get("ip_protocol") or DEFAULT_PROTOCOL).upper(),
        )


@dataclass(frozen=True)
class SyscallRecord:
    """A single syscall observation batch reported by the broker."""

    pod_name: str
    pod_namespace: str = ""
    syscalls: list[str] = field(default_factory=list)
    arch: str = ""
    time_stamp: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyscallRecord:
        """
        Create from a broker syscall record.

        The broker stores syscalls as a comma-separated string; a list is
        accepted as well.
        """
        raw = data.get("syscalls") or []
        if isinstance(raw, str):
            names = [s.strip() for s in raw.split(",")]
        else:
            names = [str(s).strip() for s in raw]
        return cls(
            pod_name=data.get("pod_name") or "",
            pod_namespace=data.get("pod_namespace") or "",
            syscalls=[n for n in names if n],
            arch=data.get("arch") or "",
            time_stamp=str(data.get("time_stamp") or ""),
        )
