"""
Seccomp profile synthesis for kguardian advisor.

Observed syscalls are merged per architecture into a single allow rule
and written as a validated seccomp profile per pod.
"""

from advisor.seccomp.profile import (
    ACTION_ALLOW,
    ACTION_ERRNO,
    ARCHITECTURES,
    DEFAULT_ACTION,
    DEFAULT_ARCHITECTURE,
    ProfileValidationError,
    SeccompError,
    SeccompProfile,
    SeccompRule,
    build_profile,
    resolve_architecture,
    validate_profile,
)
from advisor.seccomp.service import DEFAULT_OUTPUT_DIR, SeccompService
from advisor.seccomp.syscalls import SyscallSet, aggregate_syscalls, merge_syscalls

__all__ = [
    "ACTION_ALLOW",
    "ACTION_ERRNO",
    "ARCHITECTURES",
    "DEFAULT_ACTION",
    "DEFAULT_ARCHITECTURE",
    "DEFAULT_OUTPUT_DIR",
    "ProfileValidationError",
    "SeccompError",
    "SeccompProfile",
    "SeccompRule",
    "SeccompService",
    "SyscallSet",
    "aggregate_syscalls",
    "build_profile",
    "merge_syscalls",
    "resolve_architecture",
    "validate_profile",
]
