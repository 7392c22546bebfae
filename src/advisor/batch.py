"""
Per-pod batch execution for kguardian advisor.

Every pod in a batch is attempted independently. A failure is logged
and recorded without stopping the remaining pods, and the batch reports
the error of the lowest-index failing pod as its first error, whether
the batch ran sequentially or on a worker pool.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

from advisor.models import LivePod


@dataclass
class BatchItemResult:
    """Outcome for one pod of a batch."""

    index: int
    pod_name: str
    namespace: str
    output: Any = None
    error: Exception | None = None
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.cancelled


@dataclass
class BatchResult:
    """Outcomes of a batch, ordered by pod index."""

    items: list[BatchItemResult] = field(default_factory=list)

    @property
    def first_error(self) -> Exception | None:
        """Error of the lowest-index failing pod, if any."""
        for item in self.items:
            if item.error is not None:
                return item.error
        return None

    @property
    def succeeded(self) -> list[BatchItemResult]:
        return [i for i in self.items if i.succeeded]

    @property
    def failed(self) -> list[BatchItemResult]:
        return [i for i in self.items if i.error is not None]

    @property
    def cancelled(self) -> list[BatchItemResult]:
        return [i for i in self.items if i.cancelled]

    def raise_for_error(self) -> None:
        """Raise the first error, if any pod failed."""
        error = self.first_error
        if error is not None:
            raise error


def run_batch(
    pods: list[LivePod],
    handler: Callable[[LivePod], Any],
    max_workers: int = 1,
    cancel: threading.Event | None = None,
    logger: logging.Logger | None = None,
    action: str = "processing",
) -> BatchResult:
    """
    Run handler for every pod.

    Args:
        pods: Pods to process
        handler: Callable invoked once per pod; its return value is
            recorded as the item output
        max_workers: Worker threads; 1 processes pods sequentially
        cancel: Optional event; pods not yet started when it is set are
            recorded as cancelled, pods already running complete. It is
            set when the batch is interrupted with KeyboardInterrupt.
        logger: Logger for per-pod failures
        action: Verb used in log messages

    Returns:
        BatchResult ordered by pod index
    """
    log = logger or logging.getLogger(__name__)
    if cancel is None:
        cancel = threading.Event()

    def run_one(index: int, pod: LivePod) -> BatchItemResult:
        item = BatchItemResult(index=index, pod_name=pod.name, namespace=pod.namespace)
        if cancel.is_set():
            item.cancelled = True
            log.info(f"Skipping pod {pod.name}: batch cancelled")
            return item
        try:
            item.output = handler(pod)
        except Exception as e:
            log.error(f"Error {action} for pod {pod.name}: {e}")
            item.error = e
        return item

    if max_workers <= 1 or len(pods) <= 1:
        try:
            return BatchResult(items=[run_one(i, pod) for i, pod in enumerate(pods)])
        except KeyboardInterrupt:
            cancel.set()
            raise

    executor = ThreadPoolExecutor(max_workers=max_workers)
    try:
        futures = [executor.submit(run_one, i, pod) for i, pod in enumerate(pods)]
        items = [future.result() for future in futures]
    except KeyboardInterrupt:
        # Queued pods are dropped; running pods finish before re-raising
        cancel.set()
        executor.shutdown(wait=True, cancel_futures=True)
        raise
    executor.shutdown(wait=True)

    return BatchResult(items=items)
