"""
HTTP client for the kguardian broker.

The broker records pod traffic, syscalls, pod details and service
details. This client normalizes its responses into the three outcomes
the policy pipeline cares about: a value, an expected absence, or an
error.
"""

from __future__ import annotations

import http.client
import json
import logging
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from advisor.broker.base import (
    BrokerCancelledError,
    BrokerDecodeError,
    BrokerTransportError,
    LookupResult,
    SyscallsNotFoundError,
    TrafficNotFoundError,
)
from advisor.models import FlowRecord, PodContext, ServiceContext, SyscallRecord


DEFAULT_BROKER_URL = "http://127.0.0.1:9090"
DEFAULT_TIMEOUT = 90.0


class BrokerClient:
    """
    Read-only client for the broker REST API.

    Every call is a blocking GET bounded by the configured timeout.
    Nothing is retried; callers needing retries wrap calls themselves.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BROKER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        traffic_fetch_delay: float = 0.0,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize broker client.

        Args:
            base_url: Broker base URL
            timeout: Per-request timeout in seconds
            traffic_fetch_delay: Seconds to wait before each traffic fetch
            logger: Logger to use instead of the module logger
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.traffic_fetch_delay = traffic_fetch_delay
        self._log = logger or logging.getLogger(__name__)

    def fetch_traffic(
        self,
        pod_name: str,
        cancel: threading.Event | None = None,
    ) -> list[FlowRecord]:
        """
        Fetch observed traffic for a pod.

        Args:
            pod_name: Pod name
            cancel: Optional event that aborts the fetch when set

        Returns:
            Non-empty list of flow records

        Raises:
            TrafficNotFoundError: If the broker has no traffic for the pod
            BrokerTransportError: If the request fails or returns non-200
            BrokerDecodeError: If the response is not a list of records
        """
        self._pre_fetch_delay(cancel)
        url = self._url("pod", "traffic", pod_name)
        data = self._get_json(url, cancel)

        if data is None or data == []:
            raise TrafficNotFoundError(
                f"No pod traffic found for {pod_name}", url=url
            )
        if not isinstance(data, list):
            raise BrokerDecodeError(
                f"Expected a list of traffic records, got {type(data).__name__}",
                url=url,
            )

        return [self._decode_record(FlowRecord, item, url) for item in data]

    def fetch_syscalls(
        self,
        pod_name: str,
        cancel: threading.Event | None = None,
    ) -> list[SyscallRecord]:
        """
        Fetch observed syscalls for a pod.

        Raises:
            SyscallsNotFoundError: If the broker has no syscalls for the pod
            BrokerTransportError: If the request fails or returns non-200
            BrokerDecodeError: If the response cannot be decoded
        """
        url = self._url("pod", "syscalls", pod_name)
        data = self._get_json(url, cancel)

        if data is None or data == []:
            raise SyscallsNotFoundError(
                f"No syscalls found for {pod_name}", url=url
            )
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise BrokerDecodeError(
                f"Expected syscall records, got {type(data).__name__}", url=url
            )

        return [self._decode_record(SyscallRecord, item, url) for item in data]

    def fetch_pod_spec(
        self,
        ip: str,
        cancel: threading.Event | None = None,
    ) -> LookupResult[PodContext]:
        """
        Look up pod details by IP.

        A non-200 status means the pod is not indexed yet and is returned
        as absent. Transport and decode failures are raised.
        """
        return self._lookup(self._url("pod", "ip", ip), PodContext, cancel)

    def fetch_service_spec(
        self,
        ip: str,
        cancel: threading.Event | None = None,
    ) -> LookupResult[ServiceContext]:
        """Look up service details by cluster IP. Same semantics as fetch_pod_spec."""
        return self._lookup(self._url("svc", "ip", ip), ServiceContext, cancel)

    def fetch_all_traffic(self) -> list[FlowRecord]:
        """
        Fetch traffic for every pod in the cluster.

        An empty body yields no records; any other non-list body raises
        BrokerDecodeError.
        """
        url = self._url("pod", "traffic")
        data = self._get_json(url)
        if data is None:
            return []
        if not isinstance(data, list):
            raise BrokerDecodeError(
                f"Expected a list of traffic records, got {type(data).__name__}",
                url=url,
            )
        return [self._decode_record(FlowRecord, item, url) for item in data]

    def fetch_all_pods(self) -> list[PodContext]:
        """Fetch details of every indexed pod in the cluster."""
        url = self._url("pod", "info")
        data = self._get_json(url)
        if data is None:
            return []
        if not isinstance(data, list):
            raise BrokerDecodeError(
                f"Expected a list of pod records, got {type(data).__name__}",
                url=url,
            )
        return [self._decode_record(PodContext, item, url) for item in data]

    def _url(self, *parts: str) -> str:
        quoted = [urllib.parse.quote(p, safe="") for p in parts]
        return "/".join([self.base_url, *quoted])

    def _pre_fetch_delay(self, cancel: threading.Event | None) -> None:
        if self.traffic_fetch_delay <= 0:
            return
        if cancel is None:
            time.sleep(self.traffic_fetch_delay)
        elif cancel.wait(self.traffic_fetch_delay):
            raise BrokerCancelledError("Traffic fetch cancelled during delay")

    def _lookup(
        self,
        url: str,
        model: Any,
        cancel: threading.Event | None,
    ) -> LookupResult[Any]:
        try:
            data = self._get_json(url, cancel)
        except BrokerTransportError as e:
            if e.status_code is not None:
                self._log.debug(
                    f"Received non-OK HTTP status code: {e.status_code}",
                    extra={"url": url, "status_code": e.status_code},
                )
                return LookupResult.absent()
            raise

        if not data:
            return LookupResult.absent()
        if not isinstance(data, dict):
            raise BrokerDecodeError(
                f"Expected an object, got {type(data).__name__}", url=url
            )
        return LookupResult.found(self._decode_record(model, data, url))

    def _decode_record(self, model: Any, item: Any, url: str) -> Any:
        if not isinstance(item, dict):
            raise BrokerDecodeError(
                f"Expected an object in broker response, got {type(item).__name__}",
                url=url,
            )
        return model.from_dict(item)

    def _get_json(
        self,
        url: str,
        cancel: threading.Event | None = None,
    ) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            BrokerCancelledError: If cancel is already set
            BrokerTransportError: On connection failure, timeout or non-200
            BrokerDecodeError: On an undecodable body
        """
        if cancel is not None and cancel.is_set():
            raise BrokerCancelledError("Broker request cancelled", url=url)

        self._log.debug(
            "Making broker request", extra={"url": url, "timeout": self.timeout}
        )
        start_time = time.time()
        request = urllib.request.Request(
            url, headers={"Accept": "application/json"}, method="GET"
        )

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read()
                status_code = response.status
        except urllib.error.HTTPError as e:
            raise BrokerTransportError(
                f"Broker returned status {e.code} for {url}",
                url=url,
                status_code=e.code,
            ) from e
        except urllib.error.URLError as e:
            self._log.error(
                "Broker request failed",
                extra={"url": url, "duration": time.time() - start_time},
            )
            raise BrokerTransportError(
                f"Failed to reach broker at {url}: {e.reason}", url=url
            ) from e
        except TimeoutError as e:
            raise BrokerTransportError(
                f"Broker request to {url} timed out after {self.timeout}s", url=url
            ) from e
        except http.client.HTTPException as e:
            raise BrokerTransportError(
                f"Broker response from {url} was interrupted: {e!r}", url=url
            ) from e

        self._log.debug(
            "Received broker response",
            extra={
                "url": url,
                "status_code": status_code,
                "duration": time.time() - start_time,
            },
        )

        if not body or not body.strip():
            return None

        try:
            return json.loads(body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BrokerDecodeError(
                f"Failed to decode broker response from {url}: {e}", url=url
            ) from e
