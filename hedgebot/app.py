"""
Wiring of strategy instances onto shared adapters.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from hedgebot.config.config import Settings
from hedgebot.config.instance_config import InstanceConfig
from hedgebot.core.ports import ExchangePort, MarketDataPort, Strategy
from hedgebot.features.history import SnapshotHistory
from hedgebot.infra.logging_cfg import log_event
from hedgebot.monitoring.metrics import HealthChecker
from hedgebot.monitoring.metrics_rich import RichMetrics
from hedgebot.orchestrator.strategy_runner import StrategyRunner
from hedgebot.risk.circuit_breaker import CircuitBreakerConfig
from hedgebot.strategy.strategy_factory import StrategyFactory

log = logging.getLogger("hedgebot")


def build_strategies(
    instances: List[InstanceConfig],
    cfg: Settings,
    exchange: ExchangePort,
    market: MarketDataPort,
    metrics: Optional[RichMetrics] = None,
) -> List[Strategy]:
    strategies: List[Strategy] = []
    for inst in instances:
        history = None
        if cfg.feature_history > 0:
            history = SnapshotHistory(size=cfg.feature_history, depth=cfg.book_depth)
        strategy = StrategyFactory.create(
            inst,
            exchange,
            market,
            pricing=cfg.pricing,
            history=history,
            metrics=metrics,
        )
        log_event(
            log,
            "instance_created",
            instance=strategy.name,
            strategy=inst.strategy,
            contracts=inst.contracts,
            leverage=inst.leverage,
            imbalance=inst.imbalance,
        )
        strategies.append(strategy)
    return strategies


def build_runner(
    instances: List[InstanceConfig],
    cfg: Settings,
    exchange: ExchangePort,
    market: MarketDataPort,
    metrics: Optional[RichMetrics] = None,
    health: Optional[HealthChecker] = None,
) -> StrategyRunner:
    strategies = build_strategies(instances, cfg, exchange, market, metrics)
    return StrategyRunner(
        strategies,
        loop_interval=cfg.loop_interval,
        breaker_config=CircuitBreakerConfig(
            error_threshold=cfg.error_threshold,
            cooldown_sec=cfg.error_cooldown_sec,
        ),
        metrics=metrics,
        health=health,
    )
