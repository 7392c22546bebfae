"""
Seccomp profile model and validation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from advisor.seccomp.syscalls import SyscallSet, merge_syscalls

ACTION_ALLOW = "SCMP_ACT_ALLOW"
ACTION_ERRNO = "SCMP_ACT_ERRNO"
DEFAULT_ACTION = ACTION_ERRNO

ARCH_X86_64 = "SCMP_ARCH_X86_64"
DEFAULT_ARCHITECTURE = ARCH_X86_64

# Broker architecture names to seccomp architecture tokens
ARCHITECTURES: dict[str, list[str]] = {
    "x86_64": [ARCH_X86_64],
    "amd64": [ARCH_X86_64],
    "arm64": ["SCMP_ARCH_ARM64"],
    "aarch64": ["SCMP_ARCH_ARM64"],
}


class SeccompError(Exception):
    """Exception raised for seccomp profile failures."""

    def __init__(self, message: str, pod_name: str | None = None):
        self.pod_name = pod_name
        super().__init__(message)


class ProfileValidationError(SeccompError):
    """A generated profile is malformed."""

    pass


@dataclass
class SeccompRule:
    """A set of syscalls sharing one action."""

    names: list[str]
    action: str = ACTION_ALLOW

    def to_dict(self) -> dict[str, Any]:
        return {"names": list(self.names), "action": self.action}


@dataclass
class SeccompProfile:
    """
    A seccomp profile document.

    Attributes:
        default_action: Action for syscalls not matched by any rule
        architectures: Seccomp architecture tokens
        syscalls: Ordered rules
    """

    default_action: str = DEFAULT_ACTION
    architectures: list[str] = field(default_factory=list)
    syscalls: list[SeccompRule] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "defaultAction": self.default_action,
            "architectures": list(self.architectures),
            "syscalls": [rule.to_dict() for rule in self.syscalls],
        }

    def to_json(self, indent: int = 4) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def resolve_architecture(
    arch: str,
    pod_name: str = "",
    logger: logging.Logger | None = None,
) -> list[str]:
    """
    Map a broker architecture name to seccomp architecture tokens.

    Unknown architectures fall back to x86_64 with a warning instead of
    failing.
    """
    tokens = ARCHITECTURES.get(arch.strip().lower())
    if tokens:
        return list(tokens)

    log = logger or logging.getLogger(__name__)
    log.warning(
        f"Unknown architecture {arch!r} for pod {pod_name}, "
        f"defaulting to {DEFAULT_ARCHITECTURE}"
    )
    return [DEFAULT_ARCHITECTURE]


def build_profile(
    syscall_sets: list[SyscallSet],
    default_action: str = DEFAULT_ACTION,
    pod_name: str = "",
    logger: logging.Logger | None = None,
) -> SeccompProfile:
    """
    Build an allow-list profile from a pod's syscall sets.

    All observed syscalls go into a single allow rule. Empty syscall
    sets produce a profile with no rules, which fails validation.
    """
    architectures: list[str] = []
    for syscall_set in syscall_sets or [SyscallSet(arch="", names=frozenset())]:
        for token in resolve_architecture(syscall_set.arch, pod_name, logger):
            if token not in architectures:
                architectures.append(token)

    names = merge_syscalls(*(s.names for s in syscall_sets))
    rules = [SeccompRule(names=names, action=ACTION_ALLOW)] if names else []

    return SeccompProfile(
        default_action=default_action,
        architectures=architectures,
        syscalls=rules,
    )


def validate_profile(profile: SeccompProfile) -> None:
    """
    Check that a profile is well formed.

    Raises:
        ProfileValidationError: If the default action is empty, or there
            is no architecture or no syscall rule
    """
    if not profile.default_action:
        raise ProfileValidationError("default action is required")
    if not profile.architectures:
        raise ProfileValidationError("at least one architecture must be specified")
    if not profile.syscalls:
        raise ProfileValidationError("at least one syscall rule must be specified")
