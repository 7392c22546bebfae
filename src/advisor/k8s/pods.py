"""
Live pod enumeration for kguardian advisor.

Reads pods from the cluster with the official kubernetes client. Only
read operations are used.
"""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from advisor.models import LivePod


class PodLister:
    """
    Lists pods from a Kubernetes cluster.

    Pods can be selected by name within a namespace, by namespace, or
    across all namespaces.
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        in_cluster: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize PodLister.

        Args:
            kubeconfig: Path to kubeconfig file
            context: Kubernetes context to use
            in_cluster: Use in-cluster configuration
            logger: Logger to use instead of the module logger
        """
        self._kubeconfig = kubeconfig
        self._context = context
        self._in_cluster = in_cluster
        self._log = logger or logging.getLogger(__name__)
        self._api_client: Any = None
        self._core_v1: Any = None

    def _init_client(self) -> None:
        """Initialize the Kubernetes client."""
        if self._core_v1 is not None:
            return

        if self._in_cluster:
            config.load_incluster_config()
        else:
            config.load_kube_config(
                config_file=self._kubeconfig,
                context=self._context,
            )

        self._api_client = client.ApiClient()
        self._core_v1 = client.CoreV1Api(self._api_client)

    def list_pods(
        self,
        names: list[str] | None = None,
        namespace: str = "default",
        all_namespaces: bool = False,
    ) -> list[LivePod]:
        """
        List pods.

        Args:
            names: Pod names to fetch from the namespace; all pods if empty
            namespace: Namespace to read from
            all_namespaces: List pods from every namespace (names ignored)

        Returns:
            Live pods; named pods that do not exist are skipped with a warning
        """
        self._init_client()

        if all_namespaces:
            pods = self._core_v1.list_pod_for_all_namespaces().items
        elif names:
            pods = []
            for name in names:
                try:
                    pods.append(self._core_v1.read_namespaced_pod(name, namespace))
                except ApiException as e:
                    if e.status != 404:
                        raise
                    self._log.warning(f"Pod {name} not found in namespace {namespace}")
        else:
            pods = self._core_v1.list_namespaced_pod(namespace).items

        return [self._to_live_pod(pod) for pod in pods]

    def _to_live_pod(self, pod: Any) -> LivePod:
        raw = self._api_client.sanitize_for_serialization(pod)
        return LivePod.from_k8s(pod, raw=raw)
