"""Tests for Prometheus metrics and the monitoring HTTP server."""

import asyncio
import json

import pytest

from hedgebot.monitoring.metrics import HealthChecker, route, start_metrics_server
from hedgebot.monitoring.metrics_rich import RichMetrics


def _split(raw: bytes):
    head, body = raw.split(b"\r\n\r\n", 1)
    return head.split(b"\r\n")[0], body


def test_rich_metrics_counters_and_gauges():
    metrics = RichMetrics()
    metrics.orders_placed.labels(instrument="BTC", side="buy").inc()
    metrics.orders_placed.labels(instrument="BTC", side="buy").inc()
    metrics.position.labels(instrument="BTC").set(-100)
    metrics.round_profit.labels(instrument="BTC").observe(0.00002)

    reg = metrics.get_registry()
    assert reg.get_sample_value("orders_placed_total", {"instrument": "BTC", "side": "buy"}) == 2.0
    assert reg.get_sample_value("position_contracts", {"instrument": "BTC"}) == -100.0
    assert reg.get_sample_value("round_profit_count", {"instrument": "BTC"}) == 1.0


def test_separate_registries_do_not_collide():
    RichMetrics()
    RichMetrics()


def test_health_checker():
    health = HealthChecker()
    assert health.is_healthy()
    health.set_component_health("BTC/ETH", False, "boom")
    assert not health.is_healthy()
    assert health.to_dict()["details"] == {"BTC/ETH": "boom"}
    health.set_component_health("BTC/ETH", True)
    assert health.is_healthy()
    assert health.to_dict()["details"] == {}


def test_route_health_and_status():
    metrics = RichMetrics()
    health = HealthChecker()
    health.set_component_health("BTC/ETH", False, "boom")

    status, body = _split(route("/health", metrics.get_registry(), health_checker=health))
    assert status == b"HTTP/1.1 503 Service Unavailable"
    assert json.loads(body)["healthy"] is False

    status, body = _split(route("/status", metrics.get_registry(), status_source=lambda: {"cycles": 3}))
    assert status == b"HTTP/1.1 200 OK"
    assert json.loads(body) == {"cycles": 3}


def test_route_metrics_and_auth():
    metrics = RichMetrics()
    metrics.rounds_completed.labels(instrument="BTC").inc()

    status, body = _split(route("/metrics", metrics.get_registry()))
    assert status == b"HTTP/1.1 200 OK"
    assert b'rounds_completed_total{instrument="BTC"} 1.0' in body

    status, _ = _split(route("/metrics", metrics.get_registry(), authorized=False))
    assert status == b"HTTP/1.1 401 Unauthorized"
    status, _ = _split(route("/health", metrics.get_registry(), authorized=False))
    assert status == b"HTTP/1.1 200 OK"
    status, _ = _split(route("/nope", metrics.get_registry()))
    assert status == b"HTTP/1.1 404 Not Found"


@pytest.mark.asyncio
async def test_server_serves_status_with_token():
    metrics = RichMetrics()
    srv = await start_metrics_server(
        metrics.get_registry(), 0, status_source=lambda: {"ok": True}, auth_token="t0k", host="127.0.0.1"
    )
    port = srv.sockets[0].getsockname()[1]

    async def get(path, headers=b""):
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writer.write(b"GET " + path + b" HTTP/1.1\r\nHost: x\r\n" + headers + b"\r\n")
        await writer.drain()
        raw = await reader.read()
        writer.close()
        return _split(raw)

    try:
        status, _ = await get(b"/status")
        assert status == b"HTTP/1.1 401 Unauthorized"
        status, body = await get(b"/status", b"Authorization: Bearer t0k\r\n")
        assert status == b"HTTP/1.1 200 OK"
        assert json.loads(body) == {"ok": True}
        status, _ = await get(b"/status?token=t0k")
        assert status == b"HTTP/1.1 200 OK"
    finally:
        srv.close()
        await srv.wait_closed()
