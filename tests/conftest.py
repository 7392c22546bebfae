"""
Pytest configuration and fixtures for kguardian advisor tests.

This module provides common fixtures used across unit tests.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from unittest.mock import MagicMock

import pytest

from advisor.broker import BrokerClient, LookupResult, TrafficNotFoundError
from advisor.config import AdvisorConfig
from advisor.models import (
    FlowRecord,
    LivePod,
    PodContext,
    ServiceContext,
    SyscallRecord,
    TrafficDirection,
)


# Logging isolation


@pytest.fixture(autouse=True)
def restore_advisor_logger():
    """Undo configure_logging() changes to the advisor logger after each test."""
    logger = logging.getLogger("advisor")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# Sample data fixtures


@pytest.fixture
def live_pod() -> LivePod:
    """Return a live pod with an assigned IP."""
    return LivePod(
        name="web-0",
        namespace="shop",
        uid="0b7c3e2a-uid",
        pod_ip="10.0.0.12",
        labels={"app": "web"},
        raw={"metadata": {"name": "web-0", "labels": {"app": "web"}}},
    )


@pytest.fixture
def pending_pod() -> LivePod:
    """Return a live pod without an IP."""
    return LivePod(name="pending-0", namespace="shop")


@pytest.fixture
def ingress_flow() -> FlowRecord:
    """Return an INGRESS flow from a client into web-0:8080."""
    return FlowRecord(
        pod_name="web-0",
        pod_ip="10.0.0.12",
        pod_namespace="shop",
        pod_port="8080",
        direction=TrafficDirection.INGRESS,
        peer_ip="10.0.0.50",
        peer_port="51234",
        protocol="TCP",
    )


@pytest.fixture
def egress_flow() -> FlowRecord:
    """Return an EGRESS flow from web-0 to an external resolver."""
    return FlowRecord(
        pod_name="web-0",
        pod_ip="10.0.0.12",
        pod_namespace="shop",
        pod_port="40000",
        direction=TrafficDirection.EGRESS,
        peer_ip="8.8.8.8",
        peer_port="53",
        protocol="UDP",
    )


@pytest.fixture
def pod_context() -> PodContext:
    """Return an indexed pod context for web-0."""
    return PodContext(
        uuid="broker-uuid-1",
        pod_ip="10.0.0.12",
        name="web-0",
        namespace="shop",
        spec={"metadata": {"name": "web-0", "labels": {"app": "web", "tier": "fe"}}},
    )


@pytest.fixture
def syscall_records() -> list[SyscallRecord]:
    """Return two overlapping syscall observations."""
    return [
        SyscallRecord(pod_name="web-0", syscalls=["read", "write", "openat"], arch="x86_64"),
        SyscallRecord(pod_name="web-0", syscalls=["write", "close"], arch="x86_64"),
    ]


@pytest.fixture
def mock_broker() -> MagicMock:
    """
    Return a broker mock with no recorded data.

    Traffic and syscall lookups raise not-found; spec lookups are absent.
    """
    broker = MagicMock(spec=BrokerClient)
    broker.fetch_traffic.side_effect = TrafficNotFoundError("no traffic")
    broker.fetch_pod_spec.return_value = LookupResult.absent()
    broker.fetch_service_spec.return_value = LookupResult.absent()
    return broker


@pytest.fixture
def config(tmp_path) -> AdvisorConfig:
    """Return a configuration writing into a temporary directory."""
    return AdvisorConfig(output_dir=str(tmp_path / "out"))


@pytest.fixture
def service_context() -> ServiceContext:
    """Return a service in another namespace."""
    return ServiceContext(
        svc_ip="10.96.0.20",
        name="payments",
        namespace="billing",
        spec={"spec": {"selector": {"app": "payments"}}},
    )


# HTTP helpers


def make_response(payload: Any, status: int = 200) -> MagicMock:
    """Build a urlopen() context manager returning payload as JSON."""
    if isinstance(payload, bytes):
        body = payload
    else:
        body = json.dumps(payload).encode("utf-8")
    response = MagicMock()
    response.read.return_value = body
    response.status = status
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


@pytest.fixture
def http_response():
    """Return the make_response helper."""
    return make_response

