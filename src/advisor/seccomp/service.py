"""
Seccomp profile generation for kguardian advisor.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from advisor.batch import BatchResult, run_batch
from advisor.broker import BrokerClient, SyscallsNotFoundError
from advisor.models import LivePod
from advisor.seccomp.profile import (
    DEFAULT_ACTION,
    ProfileValidationError,
    SeccompProfile,
    build_profile,
    validate_profile,
)
from advisor.seccomp.syscalls import aggregate_syscalls

DEFAULT_OUTPUT_DIR = "seccomp-profiles"


class SeccompService:
    """
    Builds, validates and writes one seccomp profile per pod.

    Profiles are written as {output_dir}/{pod}-seccomp.json.
    """

    def __init__(
        self,
        broker: BrokerClient,
        output_dir: str = "",
        default_action: str = "",
        logger: logging.Logger | None = None,
    ):
        """
        Initialize seccomp service.

        Args:
            broker: Broker client for syscall lookups
            output_dir: Profile directory (default: seccomp-profiles)
            default_action: Profile default action (default: SCMP_ACT_ERRNO)
            logger: Logger to use instead of the module logger
        """
        self.broker = broker
        self.output_dir = output_dir or DEFAULT_OUTPUT_DIR
        self.default_action = default_action or DEFAULT_ACTION
        self._log = logger or logging.getLogger(__name__)

    def generate_profile(
        self,
        pod: LivePod,
        cancel: threading.Event | None = None,
    ) -> SeccompProfile:
        """
        Build and validate a profile from the pod's observed syscalls.

        Raises:
            BrokerError: If syscalls cannot be fetched
            ProfileValidationError: If the resulting profile is malformed
        """
        records = self.broker.fetch_syscalls(pod.name, cancel=cancel)
        syscall_sets = list(aggregate_syscalls(records).values())
        profile = build_profile(
            syscall_sets,
            default_action=self.default_action,
            pod_name=pod.name,
            logger=self._log,
        )

        try:
            validate_profile(profile)
        except ProfileValidationError as e:
            self._log.error(f"Generated profile for pod {pod.name} failed validation: {e}")
            e.pod_name = pod.name
            raise

        return profile

    def profile_path(self, pod_name: str) -> Path:
        return Path(os.path.expanduser(self.output_dir)) / f"{pod_name}-seccomp.json"

    def write_profile(self, pod_name: str, profile: SeccompProfile) -> str:
        """Write a validated profile and return its path."""
        path = self.profile_path(pod_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(profile.to_json(), encoding="utf-8")
        return str(path)

    def generate_and_write_profile(
        self,
        pod: LivePod,
        cancel: threading.Event | None = None,
    ) -> str:
        """Generate, validate and write the profile for one pod."""
        profile = self.generate_profile(pod, cancel=cancel)
        path = self.write_profile(pod.name, profile)
        self._log.info(f"Generated seccomp profile for pod {pod.name}: {path}")
        return path

    def _write_observed_profile(
        self,
        pod: LivePod,
        cancel: threading.Event | None,
    ) -> str | None:
        try:
            return self.generate_and_write_profile(pod, cancel=cancel)
        except SyscallsNotFoundError:
            self._log.debug(f"No syscalls recorded for pod {pod.name}, skipping")
            return None

    def generate_seccomp_profiles(
        self,
        pods: list[LivePod],
        max_workers: int = 1,
        cancel: threading.Event | None = None,
    ) -> BatchResult:
        """
        Generate profiles for many pods.

        A pod with no recorded syscalls is skipped and succeeds with no
        output. A pod whose profile fails validation, or whose syscalls
        cannot be fetched, fails without stopping the others.
        """
        Path(os.path.expanduser(self.output_dir)).mkdir(parents=True, exist_ok=True)
        return run_batch(
            pods,
            lambda pod: self._write_observed_profile(pod, cancel),
            max_workers=max_workers,
            cancel=cancel,
            logger=self._log,
            action="generating seccomp profile",
        )
