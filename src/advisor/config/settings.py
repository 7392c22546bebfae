"""
Configuration for kguardian advisor.

Settings can be loaded from a JSON or YAML file, from environment
variables, and overridden by CLI flags.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from advisor.broker import DEFAULT_BROKER_URL, DEFAULT_TIMEOUT
from advisor.network.base import PolicyType
from advisor.seccomp.profile import DEFAULT_ACTION


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AdvisorConfig:
    """
    Settings consumed by the policy pipeline.

    Attributes:
        broker_url: Broker base URL
        request_timeout: Per-request broker timeout in seconds
        traffic_fetch_delay: Seconds to wait before each traffic fetch
        output_dir: Directory generated artifacts are written to
        dry_run: Never apply generated policies to the cluster
        default_policy_type: Policy type used when none is registered
            for the requested one
        seccomp_default_action: Default action of generated seccomp profiles
        max_workers: Worker threads for batch generation
        kubeconfig: Path to kubeconfig file
        kube_context: Kubernetes context to use
        in_cluster: Use in-cluster configuration
    """

    broker_url: str = DEFAULT_BROKER_URL
    request_timeout: float = DEFAULT_TIMEOUT
    traffic_fetch_delay: float = 0.0
    output_dir: str = ""
    dry_run: bool = False
    default_policy_type: str = PolicyType.KUBERNETES.value
    seccomp_default_action: str = DEFAULT_ACTION
    max_workers: int = 1
    kubeconfig: str | None = None
    kube_context: str | None = None
    in_cluster: bool = False

    def get_output_dir(self) -> str:
        return self.output_dir

    def is_dry_run(self) -> bool:
        return self.dry_run

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "broker_url": self.broker_url,
            "request_timeout": self.request_timeout,
            "traffic_fetch_delay": self.traffic_fetch_delay,
            "output_dir": self.output_dir,
            "dry_run": self.dry_run,
            "default_policy_type": self.default_policy_type,
            "seccomp_default_action": self.seccomp_default_action,
            "max_workers": self.max_workers,
            "kubeconfig": self.kubeconfig,
            "kube_context": self.kube_context,
            "in_cluster": self.in_cluster,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdvisorConfig:
        """Create from dictionary."""
        return cls(
            broker_url=data.get("broker_url", DEFAULT_BROKER_URL),
            request_timeout=float(data.get("request_timeout", DEFAULT_TIMEOUT)),
            traffic_fetch_delay=float(data.get("traffic_fetch_delay", 0.0)),
            output_dir=data.get("output_dir") or "",
            dry_run=bool(data.get("dry_run", False)),
            default_policy_type=data.get(
                "default_policy_type", PolicyType.KUBERNETES.value
            ),
            seccomp_default_action=data.get("seccomp_default_action", DEFAULT_ACTION),
            max_workers=int(data.get("max_workers", 1)),
            kubeconfig=data.get("kubeconfig"),
            kube_context=data.get("kube_context"),
            in_cluster=bool(data.get("in_cluster", False)),
        )

    @classmethod
    def from_file(cls, path: str) -> AdvisorConfig:
        """Load configuration from a JSON or YAML file."""
        path = os.path.expanduser(path)
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith(".json"):
                return cls.from_dict(json.load(f))
            return cls.from_dict(yaml.safe_load(f) or {})

    def save(self, path: str) -> None:
        """Save configuration to a JSON or YAML file."""
        path = os.path.expanduser(path)
        Path(path).parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            if path.endswith(".json"):
                json.dump(self.to_dict(), f, indent=2)
            else:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)


def load_config_from_env() -> AdvisorConfig:
    """
    Load configuration from environment variables.

    Environment variables:
        ADVISOR_CONFIG_FILE: Path to configuration file (other variables
            override its values)
        ADVISOR_BROKER_URL: Broker base URL
        ADVISOR_TIMEOUT: Broker request timeout in seconds
        ADVISOR_TRAFFIC_DELAY: Delay before each traffic fetch in seconds
        ADVISOR_OUTPUT_DIR: Output directory
        ADVISOR_DRY_RUN: Dry-run flag (true/false)
        ADVISOR_POLICY_TYPE: Default network policy type
        ADVISOR_SECCOMP_ACTION: Default seccomp action
        ADVISOR_MAX_WORKERS: Batch worker threads

    Returns:
        AdvisorConfig instance
    """
    config_file = os.getenv("ADVISOR_CONFIG_FILE")
    if config_file and os.path.exists(config_file):
        config = AdvisorConfig.from_file(config_file)
    else:
        config = AdvisorConfig()

    if os.getenv("ADVISOR_BROKER_URL"):
        config.broker_url = os.environ["ADVISOR_BROKER_URL"]
    if os.getenv("ADVISOR_TIMEOUT"):
        config.request_timeout = float(os.environ["ADVISOR_TIMEOUT"])
    if os.getenv("ADVISOR_TRAFFIC_DELAY"):
        config.traffic_fetch_delay = float(os.environ["ADVISOR_TRAFFIC_DELAY"])
    if os.getenv("ADVISOR_OUTPUT_DIR"):
        config.output_dir = os.environ["ADVISOR_OUTPUT_DIR"]
    if os.getenv("ADVISOR_DRY_RUN"):
        config.dry_run = _parse_bool(os.environ["ADVISOR_DRY_RUN"])
    if os.getenv("ADVISOR_POLICY_TYPE"):
        config.default_policy_type = os.environ["ADVISOR_POLICY_TYPE"]
    if os.getenv("ADVISOR_SECCOMP_ACTION"):
        config.seccomp_default_action = os.environ["ADVISOR_SECCOMP_ACTION"]
    if os.getenv("ADVISOR_MAX_WORKERS"):
        config.max_workers = int(os.environ["ADVISOR_MAX_WORKERS"])

    return config
