"""
Resolved pod and service context for kguardian advisor.

PodContext and ServiceContext carry the broker's indexed view of a
workload. LivePod is the minimal live-cluster view of a pod used when
the broker has no record yet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class LivePod:
    """
    A pod as seen on the live cluster.

    Attributes:
        name: Pod name
        namespace: Pod namespace
        uid: Pod UID
        pod_ip: Pod IP from status, empty if not yet assigned
        labels: Pod labels
        raw: Full pod object as a plain dict
    """

    name: str
    namespace: str = "default"
    uid: str = ""
    pod_ip: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_k8s(cls, pod: Any, raw: dict[str, Any] | None = None) -> LivePod:
        """
        Build from a kubernetes client V1Pod.

        Args:
            pod: V1Pod object
            raw: Serialized form of the pod, if already available
        """
        metadata = pod.metadata
        status = pod.status
        return cls(
            name=metadata.name,
            namespace=metadata.namespace or "default",
            uid=str(metadata.uid or ""),
            pod_ip=(status.pod_ip if status else None) or "",
            labels=dict(metadata.labels or {}),
            raw=raw or {},
        )


@dataclass(frozen=True)
class PodContext:
    """
    Resolved identity and spec of a target pod.

    Attributes:
        uuid: Stable identifier (broker UUID or pod UID)
        pod_ip: Pod IP
        name: Pod name
        namespace: Pod namespace
        spec: Full workload spec, opaque to the pipeline
        workload_labels: Selector labels of the owning workload, if indexed
        identity: Workload identity used for naming, if indexed
    """

    uuid: str
    pod_ip: str
    name: str
    namespace: str
    spec: dict[str, Any] = field(default_factory=dict)
    workload_labels: dict[str, str] = field(default_factory=dict)
    identity: str = ""

    @property
    def labels(self) -> dict[str, str]:
        """Labels from the pod object's metadata."""
        metadata = self.spec.get("metadata") or {}
        return dict(metadata.get("labels") or {})

    def selector_labels(self) -> dict[str, str]:
        """
        Labels that select this pod in a policy.

        Workload selector labels win, then pod labels, then {app: name}.
        """
        if self.workload_labels:
            return dict(self.workload_labels)
        if self.labels:
            return self.labels
        return {"app": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PodContext:
        """Create from a broker pod detail record."""
        return cls(
            uuid=str(data.get("uuid") or ""),
            pod_ip=data.get("pod_ip") or "",
            name=data.get("pod_name") or "",
            namespace=data.get("pod_namespace") or "default",
            spec=data.get("pod_obj") or {},
            workload_labels=data.get("workload_selector_labels") or {},
            identity=data.get("pod_identity") or "",
        )

    @classmethod
    def from_live_pod(cls, pod: LivePod) -> PodContext:
        """Synthesize a best-effort context from live pod metadata."""
        spec = pod.raw or {"metadata": {"name": pod.name, "labels": pod.labels}}
        return cls(
            uuid=pod.uid,
            pod_ip=pod.pod_ip,
            name=pod.name,
            namespace=pod.namespace,
            spec=spec,
        )


@dataclass(frozen=True)
class ServiceContext:
    """Resolved identity and spec of a cluster service, keyed by cluster IP."""

    svc_ip: str
    name: str
    namespace: str
    spec: dict[str, Any] = field(default_factory=dict)

    def selector(self) -> dict[str, str]:
        """Pod selector of the service, if any."""
        return dict((self.spec.get("spec") or {}).get("selector") or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServiceContext:
        """Create from a broker service detail record."""
        return cls(
            svc_ip=data.get("svc_ip") or "",
            name=data.get("svc_name") or "",
            namespace=data.get("svc_namespace") or "",
            spec=data.get("service_spec") or {},
        )
