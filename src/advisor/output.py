"""
Artifact persistence helpers for kguardian advisor.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

POLICY_FILE_SUFFIX = ".yaml"


def handle_output_dir(output_dir: str, label: str) -> None:
    """
    Ensure the output directory exists.

    Args:
        output_dir: Directory path; empty means no persistence
        label: Human-readable artifact kind for log messages
    """
    if not output_dir:
        logger.debug(f"{label} will not be saved: no output directory configured")
        return

    path = Path(os.path.expanduser(output_dir))
    path.mkdir(parents=True, exist_ok=True)
    logger.info(f"{label} will be saved to {path}")


def policy_path(output_dir: str, resource_type: str, namespace: str, name: str) -> Path:
    """Path of a persisted policy: {dir}/{resource_type}/{namespace}/{name}.yaml."""
    return (
        Path(os.path.expanduser(output_dir))
        / resource_type
        / namespace
        / f"{name}{POLICY_FILE_SUFFIX}"
    )


def save_to_file(
    output_dir: str,
    resource_type: str,
    namespace: str,
    name: str,
    content: str,
) -> str:
    """
    Write an artifact under a resource-type/namespace scoped path.

    Writing the same artifact twice produces the same file.

    Returns:
        Path of the written file
    """
    path = policy_path(output_dir, resource_type, namespace, name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return str(path)


def print_dry_run_message(
    resource_type: str,
    name: str,
    content: str,
    output_dir: str = "",
) -> None:
    """Print a preview of an artifact that will not be applied."""
    print(f"--- Dry run: {resource_type} for pod {name} (not applied) ---")
    if output_dir:
        print(f"# saved under {output_dir}")
    print(content.rstrip("\n"))
    print()
