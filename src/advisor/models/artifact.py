"""
Generated policy artifacts for kguardian advisor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PolicyArtifact:
    """
    A generated policy plus its serialized form.

    Attributes:
        policy: The generator-specific policy document
        text: Serialized YAML of the policy
        pod_name: Owning pod name
        namespace: Owning pod namespace
        policy_type: Policy type actually used, after any fallback
    """

    policy: dict[str, Any]
    text: str
    pod_name: str
    namespace: str
    policy_type: str

    @property
    def resource_type(self) -> str:
        """Directory-level resource type, e.g. kubernetes-networkpolicy."""
        return f"{self.policy_type}-networkpolicy"
