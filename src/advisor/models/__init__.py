"""
Data models for kguardian advisor.

- FlowRecord / TrafficDirection: observed network flows for a pod
- SyscallRecord: observed syscalls for a pod
- LivePod / PodContext / ServiceContext: workload identity and spec
- PolicyArtifact: a generated policy and its serialized form
"""

from advisor.models.artifact import PolicyArtifact
from advisor.models.context import LivePod, PodContext, ServiceContext
from advisor.models.traffic import (
    DEFAULT_PROTOCOL,
    FlowRecord,
    SyscallRecord,
    TrafficDirection,
)

__all__ = [
    "DEFAULT_PROTOCOL",
    "FlowRecord",
    "LivePod",
    "PodContext",
    "PolicyArtifact",
    "ServiceContext",
    "SyscallRecord",
    "TrafficDirection",
]
