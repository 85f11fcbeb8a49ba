"""
StrategyRunner: polls every configured strategy instance with isolation.

Instances are cycled one after another; a cycle is awaited in full before
the next instance starts. An exception escaping one instance is logged with
its traceback and counted by that instance's circuit breaker, and the other
instances keep trading. A tripped breaker parks its instance until the
cooldown expires.

Usage:
    runner = StrategyRunner(strategies, loop_interval=1.0)
    await runner.setup_all()
    await runner.run()      # until runner.stop()
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

from hedgebot.core.ports import Strategy
from hedgebot.infra.logging_cfg import log_event
from hedgebot.risk.circuit_breaker import CircuitBreaker, CircuitBreakerConfig

if TYPE_CHECKING:
    from hedgebot.monitoring.metrics import HealthChecker
    from hedgebot.monitoring.metrics_rich import RichMetrics

log = logging.getLogger("hedgebot")


@dataclass
class CycleResult:
    """Outcome of one instance's cycle."""
    name: str
    success: bool
    skipped: bool = False
    error: Optional[str] = None
    duration_ms: float = 0.0


@dataclass
class RunnerSlot:
    strategy: Strategy
    breaker: CircuitBreaker
    ready: bool = False

    @property
    def name(self) -> str:
        return self.strategy.name

    @property
    def label(self) -> str:
        return getattr(self.strategy, "make", self.strategy.name)


class StrategyRunner:
    def __init__(
        self,
        strategies: Sequence[Strategy],
        loop_interval: float = 1.0,
        breaker_config: Optional[CircuitBreakerConfig] = None,
        metrics: Optional["RichMetrics"] = None,
        health: Optional["HealthChecker"] = None,
        log_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.loop_interval = loop_interval
        self.metrics = metrics
        self.health = health
        self._log_event = log_event or self._default_log
        self.slots: List[RunnerSlot] = [
            RunnerSlot(
                strategy=s,
                breaker=CircuitBreaker(breaker_config, name=s.name, log_event=self._log_event),
            )
            for s in strategies
        ]
        self._stop = asyncio.Event()
        self.cycles = 0

    def _default_log(self, event: str, **kwargs: Any) -> None:
        log_event(log, event, **kwargs)

    # ========== Lifecycle ==========

    async def setup_all(self) -> None:
        """Run setup on every instance. A failed setup is retried before its next cycle."""
        for slot in self.slots:
            await self._setup(slot)

    async def _setup(self, slot: RunnerSlot) -> bool:
        try:
            await slot.strategy.setup()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log_event(
                log,
                "instance_setup_error",
                logging.ERROR,
                instance=slot.name,
                err=str(exc),
                traceback=traceback.format_exc(),
            )
            slot.breaker.record_error("setup", exc)
            self._mark_health(slot, False, f"setup: {exc}")
            return False
        slot.ready = True
        self._mark_health(slot, True)
        return True

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> None:
        self._log_event("runner_started", instances=[s.name for s in self.slots], interval=self.loop_interval)
        while not self._stop.is_set():
            await self.run_cycle()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.loop_interval)
            except asyncio.TimeoutError:
                pass
        self._log_event("runner_stopped", cycles=self.cycles)

    # ========== Cycle ==========

    async def run_cycle(self) -> List[CycleResult]:
        results = [await self._run_slot(slot) for slot in self.slots]
        self.cycles += 1
        if self.health:
            self.health.heartbeat()
        return results

    async def _run_slot(self, slot: RunnerSlot) -> CycleResult:
        tripped = slot.breaker.is_tripped
        if self.metrics:
            self.metrics.circuit_open.labels(instrument=slot.label).set(1 if tripped else 0)
        if tripped:
            self._log_event(
                "instance_skipped_circuit_open",
                instance=slot.name,
                cooldown_remaining=round(slot.breaker.cooldown_remaining, 1),
            )
            return CycleResult(name=slot.name, success=False, skipped=True)

        if not slot.ready and not await self._setup(slot):
            return CycleResult(name=slot.name, success=False, error="setup failed")

        started = time.perf_counter()
        try:
            await slot.strategy.poll_once()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            duration_ms = (time.perf_counter() - started) * 1000.0
            log_event(
                log,
                "instance_cycle_error",
                logging.ERROR,
                instance=slot.name,
                err=str(exc),
                traceback=traceback.format_exc(),
            )
            slot.breaker.record_error("poll_once", exc)
            self._mark_health(slot, False, str(exc))
            if self.metrics:
                self.metrics.cycle_errors.labels(instrument=slot.label, kind="unexpected").inc()
            return CycleResult(name=slot.name, success=False, error=str(exc), duration_ms=duration_ms)

        slot.breaker.record_success()
        self._mark_health(slot, True)
        if self.metrics:
            self.metrics.cycles.labels(instrument=slot.label).inc()
        return CycleResult(name=slot.name, success=True, duration_ms=(time.perf_counter() - started) * 1000.0)

    # ========== Status ==========

    def _mark_health(self, slot: RunnerSlot, healthy: bool, detail: Optional[str] = None) -> None:
        if self.health:
            self.health.set_component_health(slot.name, healthy, detail)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "cycles": self.cycles,
            "instances": [
                {**slot.strategy.snapshot(), "ready": slot.ready, "circuit": slot.breaker.get_state()}
                for slot in self.slots
            ],
        }
