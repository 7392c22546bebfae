"""
CLI commands for policy generation.

Provides the "gen networkpolicy" and "gen seccomp" commands, which
generate policies for live pods from the traffic and syscalls recorded
by the broker.
"""

from __future__ import annotations

import argparse
import logging
import threading
from typing import Any

from advisor.batch import BatchResult
from advisor.broker import BrokerClient
from advisor.config import AdvisorConfig
from advisor.k8s import PodLister
from advisor.network import PolicyType, create_policy_service
from advisor.seccomp import SeccompService


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid worker count: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"worker count must be at least 1, got {number}")
    return number


def _add_pod_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "pods",
        nargs="*",
        help="Pod names (default: all pods in the namespace)",
    )
    parser.add_argument(
        "-n",
        "--namespace",
        default="default",
        help="Namespace of the pods (default: default)",
    )
    parser.add_argument(
        "-A",
        "--all-namespaces",
        action="store_true",
        help="Generate for pods in all namespaces",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory generated files are written to",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        help="Number of pods processed in parallel (default: 1)",
    )
    parser.add_argument("--kubeconfig", help="Path to kubeconfig file")
    parser.add_argument("--context", help="Kubernetes context to use")
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use in-cluster Kubernetes configuration",
    )


def add_gen_parser(subparsers: Any) -> None:
    """Add gen subcommands to the CLI."""
    gen_parser = subparsers.add_parser(
        "gen",
        help="Generate security policies from observed behaviour",
        description="Generate network policies and seccomp profiles for pods.",
    )

    gen_subparsers = gen_parser.add_subparsers(
        dest="gen_command",
        title="gen commands",
        description="Available generators",
    )

    netpol_parser = gen_subparsers.add_parser(
        "networkpolicy",
        aliases=["netpol"],
        help="Generate network policies from observed traffic",
    )
    _add_pod_selection_args(netpol_parser)
    netpol_parser.add_argument(
        "--type",
        dest="policy_type",
        choices=[t.value for t in PolicyType],
        help="Policy type (default: configured default, kubernetes)",
    )
    netpol_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview policies without applying them to the cluster",
    )

    seccomp_parser = gen_subparsers.add_parser(
        "seccomp",
        help="Generate seccomp profiles from observed syscalls",
    )
    _add_pod_selection_args(seccomp_parser)
    seccomp_parser.add_argument(
        "--default-action",
        help="Default action for syscalls not observed (default: SCMP_ACT_ERRNO)",
    )


def _apply_overrides(config: AdvisorConfig, args: argparse.Namespace) -> None:
    if getattr(args, "output_dir", None):
        config.output_dir = args.output_dir
    if getattr(args, "workers", None) is not None:
        config.max_workers = args.workers
    if getattr(args, "dry_run", False):
        config.dry_run = True
    if getattr(args, "default_action", None):
        config.seccomp_default_action = args.default_action
    if getattr(args, "kubeconfig", None):
        config.kubeconfig = args.kubeconfig
    if getattr(args, "context", None):
        config.kube_context = args.context
    if getattr(args, "in_cluster", False):
        config.in_cluster = True


def _report(result: BatchResult, what: str, logger: logging.Logger) -> int:
    for item in result.succeeded:
        if item.output:
            print(f"{item.namespace}/{item.pod_name}: {item.output}")

    logger.info(
        f"{what}: {len(result.succeeded)} succeeded, {len(result.failed)} failed, "
        f"{len(result.cancelled)} cancelled"
    )

    if result.first_error is not None:
        logger.error(f"First error: {result.first_error}")
        return 1
    return 0


def cmd_gen(
    args: argparse.Namespace,
    config: AdvisorConfig,
    logger: logging.Logger,
) -> int:
    """Route gen subcommands."""
    command = getattr(args, "gen_command", None)
    if command is None:
        print("Usage: advisor gen {networkpolicy,seccomp} [PODS...]")
        return 1

    _apply_overrides(config, args)

    broker = BrokerClient(
        base_url=config.broker_url,
        timeout=config.request_timeout,
        traffic_fetch_delay=config.traffic_fetch_delay,
        logger=logger.getChild("broker"),
    )
    lister = PodLister(
        kubeconfig=config.kubeconfig,
        context=config.kube_context,
        in_cluster=config.in_cluster,
        logger=logger.getChild("k8s"),
    )
    pods = lister.list_pods(
        names=args.pods,
        namespace=args.namespace,
        all_namespaces=args.all_namespaces,
    )
    if not pods:
        logger.warning("No pods matched the selection")
        return 0

    cancel = threading.Event()

    try:
        if command in ("networkpolicy", "netpol"):
            service = create_policy_service(
                config,
                broker,
                default_type=config.default_policy_type,
                logger=logger.getChild("network"),
            )
            service.init_output_directory()
            result = service.batch_generate_and_handle_policies(
                pods,
                args.policy_type or config.default_policy_type,
                max_workers=config.max_workers,
                cancel=cancel,
            )
            return _report(result, "Network policies", logger)

        seccomp = SeccompService(
            broker,
            output_dir=config.output_dir,
            default_action=config.seccomp_default_action,
            logger=logger.getChild("seccomp"),
        )
        result = seccomp.generate_seccomp_profiles(
            pods, max_workers=config.max_workers, cancel=cancel
        )
        return _report(result, "Seccomp profiles", logger)
    except KeyboardInterrupt:
        cancel.set()
        logger.warning("Interrupted; remaining pods were not processed")
        return 130
