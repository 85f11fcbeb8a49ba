"""
Health tracking and a small HTTP server for monitoring.

- /metrics - Prometheus text from the RichMetrics registry
- /status  - JSON snapshot of every strategy instance
- /health  - liveness, 503 when a component reports unhealthy
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qs, urlparse

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from hedgebot.infra.logging_cfg import log_event

log = logging.getLogger("hedgebot")

StatusSource = Callable[[], Dict[str, Any]]


@dataclass
class HealthStatus:
    healthy: bool = True
    last_heartbeat_ms: int = 0
    components: Dict[str, bool] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)


class HealthChecker:
    """
    Tracks component health. The runner marks each instance healthy or not
    after every cycle, and heartbeats once per loop.
    """

    def __init__(self) -> None:
        self._components: Dict[str, bool] = {}
        self._details: Dict[str, Any] = {}
        self._last_heartbeat = int(time.time() * 1000)

    def set_component_health(self, name: str, healthy: bool, detail: Optional[str] = None) -> None:
        self._components[name] = healthy
        if detail:
            self._details[name] = detail
        else:
            self._details.pop(name, None)
        self.heartbeat()

    def heartbeat(self) -> None:
        self._last_heartbeat = int(time.time() * 1000)

    def is_healthy(self) -> bool:
        if not self._components:
            return True
        return all(self._components.values())

    def get_status(self) -> HealthStatus:
        return HealthStatus(
            healthy=self.is_healthy(),
            last_heartbeat_ms=self._last_heartbeat,
            components=dict(self._components),
            details=dict(self._details),
        )

    def to_dict(self) -> Dict[str, Any]:
        status = self.get_status()
        return {
            "healthy": status.healthy,
            "last_heartbeat_ms": status.last_heartbeat_ms,
            "components": status.components,
            "details": status.details,
        }


def _response(status: bytes, content_type: str, body: bytes) -> bytes:
    return (
        b"HTTP/1.1 " + status + b"\r\n"
        b"Content-Type: " + content_type.encode() + b"\r\n"
        b"Content-Length: " + str(len(body)).encode() + b"\r\n"
        b"Connection: close\r\n\r\n"
        + body
    )


def _authorized(header_lines, query: str, auth_token: Optional[str]) -> bool:
    if not auth_token:
        return True
    for line in header_lines:
        if b":" in line:
            k, v = line.split(b":", 1)
            if k.strip().lower() == b"authorization" and v.strip().decode("utf-8", errors="ignore") == f"Bearer {auth_token}":
                return True
    return parse_qs(query).get("token", [""])[0] == auth_token


def route(
    path: str,
    registry: CollectorRegistry,
    status_source: Optional[StatusSource] = None,
    health_checker: Optional[HealthChecker] = None,
    authorized: bool = True,
) -> bytes:
    """Build the full HTTP response for a request path. /health never needs auth."""
    if path == "/health":
        if health_checker:
            ok = health_checker.is_healthy()
            body = json.dumps(health_checker.to_dict())
        else:
            ok = True
            body = json.dumps({"healthy": True})
        status = b"200 OK" if ok else b"503 Service Unavailable"
        return _response(status, "application/json", body.encode())

    if not authorized:
        return _response(b"401 Unauthorized", "text/plain", b"unauthorized\n")

    if path == "/status":
        if status_source is None:
            return _response(b"404 Not Found", "text/plain", b"no status source\n")
        try:
            body = json.dumps(status_source(), default=str)
        except Exception:
            log.exception(json.dumps({"event": "status_render_failed"}))
            return _response(b"500 Internal Server Error", "text/plain", b"status failed\n")
        return _response(b"200 OK", "application/json", body.encode())

    if path in ("/", "/metrics"):
        return _response(b"200 OK", CONTENT_TYPE_LATEST, generate_latest(registry))

    return _response(b"404 Not Found", "text/plain", b"not found\n")


async def start_metrics_server(
    registry: CollectorRegistry,
    port: int,
    status_source: Optional[StatusSource] = None,
    health_checker: Optional[HealthChecker] = None,
    auth_token: Optional[str] = None,
    host: str = "0.0.0.0",
) -> asyncio.AbstractServer:
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            req = await reader.read(2048)
            path_raw = b"/"
            lines = req.split(b"\r\n")
            parts = lines[0].split(b" ")
            if len(parts) >= 2:
                path_raw = parts[1]
            parsed = urlparse(path_raw.decode("utf-8", errors="ignore"))
            writer.write(route(
                parsed.path,
                registry,
                status_source,
                health_checker,
                authorized=_authorized(lines[1:], parsed.query, auth_token),
            ))
            await writer.drain()
        finally:
            writer.close()

    server = await asyncio.start_server(handle, host, port)
    log_event(log, "metrics_server_started", host=host, port=port)
    return server
