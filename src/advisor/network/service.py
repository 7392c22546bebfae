"""
Network policy dispatch and output handling for kguardian advisor.

PolicyService holds one generator per policy type, resolves a target
pod to its traffic and spec, dispatches to the matching generator (or
the default one) and hands the resulting artifact to the output
handler.
"""

from __future__ import annotations

import logging
import threading

import yaml

from advisor.batch import BatchResult, run_batch
from advisor.broker import (
    BrokerCancelledError,
    BrokerClient,
    BrokerError,
    TrafficNotFoundError,
)
from advisor.models import FlowRecord, LivePod, PodContext, PolicyArtifact
from advisor.network.base import (
    ConfigProvider,
    NoGeneratorAvailableError,
    PolicyError,
    PolicyGenerationError,
    PolicyGenerator,
    PolicySerializationError,
    PolicyType,
    PolicyUnavailableError,
    RegistryLockedError,
)
from advisor.output import handle_output_dir, print_dry_run_message, save_to_file


class PolicyService:
    """
    Generates and handles network policies for pods.

    Generators are registered before the first generation; the registry
    is read-only afterwards.
    """

    def __init__(
        self,
        config: ConfigProvider,
        broker: BrokerClient,
        default_type: PolicyType | str = PolicyType.KUBERNETES,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize policy service.

        Args:
            config: Provides the output directory and dry-run flag
            broker: Broker client for traffic and pod spec lookups
            default_type: Policy type used when the requested one is
                not registered
            logger: Logger to use instead of the module logger
        """
        self.config = config
        self.broker = broker
        self.default_type = PolicyType.token(default_type)
        self._generators: dict[str, PolicyGenerator] = {}
        self._locked = False
        self._log = logger or logging.getLogger(__name__)

    def register_generator(self, generator: PolicyGenerator) -> None:
        """Register a generator for its policy type."""
        if self._locked:
            raise RegistryLockedError(
                "Generators must be registered before the first policy is generated",
                policy_type=generator.policy_type.value,
            )
        self._generators[generator.policy_type.value] = generator

    @property
    def registered_types(self) -> list[str]:
        return list(self._generators)

    def generate_policy(
        self,
        pod: LivePod | None,
        policy_type: PolicyType | str,
        cancel: threading.Event | None = None,
    ) -> PolicyArtifact:
        """
        Generate a network policy for a pod.

        Missing traffic is not fatal: the pod gets a baseline policy. If
        the broker has no pod record, live pod metadata is used instead.

        Args:
            pod: Live pod to generate a policy for
            policy_type: Requested policy type
            cancel: Optional event that aborts pending broker calls

        Returns:
            PolicyArtifact tagged with the policy type actually used

        Raises:
            PolicyError: If the pod is missing, cannot be identified, no
                generator is available, or generation fails
            BrokerError: If traffic cannot be fetched for a reason other
                than the pod having no traffic
        """
        if pod is None:
            raise PolicyError("Pod reference is nil")

        self._locked = True
        requested = PolicyType.token(policy_type)

        try:
            flows = self.broker.fetch_traffic(pod.name, cancel=cancel)
        except TrafficNotFoundError:
            self._log.info(
                f"No traffic data available for pod {pod.name}; generating baseline policy"
            )
            flows = []
        except BrokerError as e:
            self._log.debug(f"Error retrieving {pod.name} pod traffic: {e}")
            raise

        pod_context = self._resolve_pod_context(pod, flows, cancel)
        generator = self._select_generator(requested, pod.name)
        used_type = generator.policy_type.value

        try:
            policy = generator.generate(pod.name, flows, pod_context, cancel=cancel)
        except BrokerCancelledError:
            raise
        except Exception as e:
            self._log.error(
                f"Error generating {used_type} policy for pod {pod.name}: {e}"
            )
            raise PolicyGenerationError(
                f"Failed to generate {used_type} policy for pod {pod.name}: {e}",
                pod_name=pod.name,
                policy_type=used_type,
            ) from e

        try:
            text = yaml.safe_dump(policy, sort_keys=False, default_flow_style=False)
        except yaml.YAMLError as e:
            self._log.error(f"Error converting {used_type} policy to YAML: {e}")
            raise PolicySerializationError(
                f"Generated {used_type} policy for pod {pod.name} is not serializable: {e}",
                pod_name=pod.name,
                policy_type=used_type,
            ) from e

        return PolicyArtifact(
            policy=policy,
            text=text,
            pod_name=pod_context.name,
            namespace=pod_context.namespace,
            policy_type=used_type,
        )

    def _resolve_pod_context(
        self,
        pod: LivePod,
        flows: list[FlowRecord],
        cancel: threading.Event | None,
    ) -> PodContext:
        lookup_ip = self._lookup_ip(pod, flows)

        if lookup_ip:
            try:
                result = self.broker.fetch_pod_spec(lookup_ip, cancel=cancel)
                if result.is_found:
                    return result.value
            except BrokerCancelledError:
                raise
            except BrokerError as e:
                self._log.debug(
                    f"Falling back to live pod metadata for {pod.name}: {e}"
                )
        else:
            self._log.debug(
                f"No lookup IP available for pod {pod.name}; using live pod metadata"
            )

        if not pod.pod_ip:
            raise PolicyUnavailableError(
                f"Pod details unavailable for {pod.name} and pod IP is empty",
                pod_name=pod.name,
            )
        return PodContext.from_live_pod(pod)

    @staticmethod
    def _lookup_ip(pod: LivePod, flows: list[FlowRecord]) -> str:
        """First non-empty of: first flow's pod IP, its peer IP, the live pod IP."""
        if flows:
            if flows[0].pod_ip:
                return flows[0].pod_ip
            if flows[0].peer_ip:
                return flows[0].peer_ip
        return pod.pod_ip

    def _select_generator(self, requested: str, pod_name: str) -> PolicyGenerator:
        generator = self._generators.get(requested)
        if generator is not None:
            return generator

        generator = self._generators.get(self.default_type)
        if generator is None:
            raise NoGeneratorAvailableError(
                f"No generator available for policy type {requested}",
                pod_name=pod_name,
                policy_type=requested,
            )
        self._log.warning(
            f"No generator found for policy type {requested}, "
            f"using default type {self.default_type}"
        )
        return generator

    def handle_policy_output(self, artifact: PolicyArtifact) -> str | None:
        """
        Persist and preview or apply a generated policy.

        The file is written whenever an output directory is configured,
        in dry-run mode too. Dry-run only suppresses applying the policy
        to the cluster.

        Returns:
            Path of the written file, or None if nothing was written
        """
        output_dir = self.config.get_output_dir()
        path = None

        if output_dir:
            path = save_to_file(
                output_dir,
                artifact.resource_type,
                artifact.namespace,
                artifact.pod_name,
                artifact.text,
            )
            self._log.info(
                f"Generated {artifact.policy_type} network policy for pod "
                f"{artifact.pod_name} saved to {path}"
            )

        if self.config.is_dry_run():
            print_dry_run_message(
                artifact.resource_type, artifact.pod_name, artifact.text, output_dir
            )
        else:
            self.apply_policy(artifact)

        return path

    def apply_policy(self, artifact: PolicyArtifact) -> None:
        """Apply a policy to the cluster. Not implemented: policies are only saved."""
        self._log.info(
            f"Applying {artifact.policy_type} network policy for pod {artifact.pod_name}"
        )
        self._log.warning(
            "Applying network policies is not yet implemented - only saving to files"
        )

    def init_output_directory(self) -> None:
        """Create the output directory if one is configured."""
        if self.config.is_dry_run():
            self._log.info(
                "Dry run: output directory checks will be performed, "
                "but policies won't be applied."
            )
        handle_output_dir(self.config.get_output_dir(), "Network policies")

    def generate_and_handle_policy(
        self,
        pod: LivePod,
        policy_type: PolicyType | str,
        cancel: threading.Event | None = None,
    ) -> str | None:
        """Generate a policy for one pod and hand it to the output handler."""
        artifact = self.generate_policy(pod, policy_type, cancel=cancel)
        return self.handle_policy_output(artifact)

    def batch_generate_and_handle_policies(
        self,
        pods: list[LivePod],
        policy_type: PolicyType | str,
        max_workers: int = 1,
        cancel: threading.Event | None = None,
    ) -> BatchResult:
        """
        Generate and handle policies for many pods.

        Every pod is attempted; failures are logged and recorded. The
        result's first_error is the error of the lowest-index failing
        pod.
        """
        return run_batch(
            pods,
            lambda pod: self.generate_and_handle_policy(pod, policy_type, cancel=cancel),
            max_workers=max_workers,
            cancel=cancel,
            logger=self._log,
            action="generating and handling policy",
        )
