"""
Entry point wiring all components.

    python -m hedgebot.main
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import httpx
from hyperliquid.exchange import Exchange

from hedgebot.app import build_runner
from hedgebot.config.config import Settings
from hedgebot.config.instance_config import load_instance_configs
from hedgebot.core.errors import ConfigError
from hedgebot.execution.execution_gateway import ExecutionGateway
from hedgebot.infra.async_execution import AsyncExchange
from hedgebot.infra.async_info import AsyncInfo
from hedgebot.infra.logging_cfg import build_logger, log_event
from hedgebot.market_data.market_data import MarketData
from hedgebot.monitoring.metrics import HealthChecker, start_metrics_server
from hedgebot.monitoring.metrics_rich import RichMetrics


async def main() -> int:
    try:
        cfg = Settings.load()
    except ConfigError as exc:
        log = build_logger("hedgebot")
        log_event(log, "config_invalid", logging.ERROR, err=str(exc))
        return 1
    log = build_logger("hedgebot", level=cfg.log_level, file_path=cfg.log_file)

    try:
        instances = load_instance_configs(cfg.instances_path)
        wallet = cfg.resolve_signer()
        account = cfg.resolve_account()
    except ConfigError as exc:
        log_event(log, "config_invalid", logging.ERROR, err=str(exc))
        return 1

    health = HealthChecker()
    metrics = RichMetrics()

    # One HTTP/2 connection shared by every info query.
    shared_info_client = httpx.AsyncClient(base_url=cfg.base_url.rstrip("/"), http2=True, timeout=cfg.http_timeout)
    async_info = AsyncInfo(cfg.base_url, timeout=cfg.http_timeout, client=shared_info_client)
    base_exchange = Exchange(wallet, cfg.base_url, account_address=account)
    async_exchange = AsyncExchange(base_exchange, timeout=cfg.http_timeout)

    gateway = ExecutionGateway(async_exchange, info=async_info, account=account)
    market = MarketData(async_info, account, depth=cfg.book_depth)
    runner = build_runner(instances, cfg, gateway, market, metrics=metrics, health=health)

    srv = await start_metrics_server(
        metrics.get_registry(),
        cfg.metrics_port,
        status_source=runner.snapshot,
        health_checker=health,
        auth_token=cfg.metrics_token,
    )
    log_event(log, "startup", instances=[s.name for s in runner.slots], account=account)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runner.stop)
        except NotImplementedError:
            pass

    try:
        await gateway.initialize()
        await runner.setup_all()
        await runner.run()
    finally:
        log_event(log, "shutdown")
        srv.close()
        await srv.wait_closed()
        await async_exchange.close()
        await async_info.close()
        await shared_info_client.aclose()
    return 0


def run() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
