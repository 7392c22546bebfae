"""
Kubernetes cluster access for kguardian advisor.
"""

from advisor.k8s.pods import PodLister

__all__ = ["PodLister"]
