"""
Prometheus metrics for Infralog.

Counters are registered once at import time on the default registry. The
metrics server runs on its own daemon thread and only ever reads these
collectors, so it needs no coordination with the poll loop.
"""

import logging
import threading
from typing import Optional, Tuple
from wsgiref.simple_server import WSGIServer

from prometheus_client import Counter, Gauge, start_http_server

logger = logging.getLogger("infralog.metrics")

CHANGES_TOTAL = Counter(
    "infralog_changes_total",
    "Total number of infrastructure changes detected",
    ["type", "resource_type"],
)

POLL_ERRORS_TOTAL = Counter(
    "infralog_poll_errors_total",
    "Total number of polling errors",
    ["stage"],
)

LAST_SUCCESSFUL_POLL_TIMESTAMP = Gauge(
    "infralog_last_successful_poll_timestamp",
    "Unix timestamp of the last successful poll",
)

NOTIFICATIONS_SENT_TOTAL = Counter(
    "infralog_notifications_sent_total",
    "Total number of notifications sent successfully",
    ["target"],
)

NOTIFICATION_ERRORS_TOTAL = Counter(
    "infralog_notification_errors_total",
    "Total number of notification errors",
    ["target"],
)


def record_poll_success() -> None:
    LAST_SUCCESSFUL_POLL_TIMESTAMP.set_to_current_time()


def record_poll_error(stage: str) -> None:
    POLL_ERRORS_TOTAL.labels(stage=stage).inc()


def record_change(change_type: str, resource_type: str) -> None:
    CHANGES_TOTAL.labels(type=change_type, resource_type=resource_type).inc()


def record_notification_success(target: str) -> None:
    NOTIFICATIONS_SENT_TOTAL.labels(target=target).inc()


def record_notification_error(target: str) -> None:
    NOTIFICATION_ERRORS_TOTAL.labels(target=target).inc()


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` listen address. An empty host binds all interfaces.

    Raises:
        ValueError: If the port is missing or not a number
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid metrics address: {address!r}")
    return host or "0.0.0.0", int(port)


class MetricsServer:
    """Serves ``/metrics`` over HTTP on a background thread."""

    def __init__(self, address: str) -> None:
        self.address = address
        self._server: Optional[WSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> Optional[int]:
        return self._server.server_port if self._server else None

    def start(self) -> None:
        host, port = parse_address(self.address)
        self._server, self._thread = start_http_server(port, addr=host)
        logger.info(f"Metrics server started on {self.address}")

    def shutdown(self, timeout: float = 5.0) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout)
        self._server = None
        self._thread = None
