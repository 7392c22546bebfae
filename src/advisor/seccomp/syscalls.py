"""
Syscall aggregation for seccomp profile synthesis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from advisor.models import SyscallRecord


@dataclass(frozen=True)
class SyscallSet:
    """Deduplicated syscall names observed for one pod on one architecture."""

    arch: str
    names: frozenset[str]

    def __len__(self) -> int:
        return len(self.names)


def merge_syscalls(*syscall_lists: Iterable[str]) -> list[str]:
    """
    Merge syscall name lists into one list with each name exactly once.

    Order carries no meaning; names are returned sorted. An empty input
    yields an empty list, which profile validation later rejects.
    """
    merged: set[str] = set()
    for names in syscall_lists:
        merged.update(names)
    return sorted(merged)


def aggregate_syscalls(records: list[SyscallRecord]) -> dict[str, SyscallSet]:
    """
    Group syscall records by architecture and merge each group.

    Architecture keys are lower-cased; records with no architecture are
    grouped under the empty string.
    """
    by_arch: dict[str, list[list[str]]] = {}
    for record in records:
        by_arch.setdefault(record.arch.strip().lower(), []).append(record.syscalls)

    return {
        arch: SyscallSet(arch=arch, names=frozenset(merge_syscalls(*lists)))
        for arch, lists in by_arch.items()
    }
