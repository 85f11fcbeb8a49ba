"""
Orchestrator package.

This package contains the runner that drives every strategy instance.
"""

from hedgebot.orchestrator.strategy_runner import CycleResult, RunnerSlot, StrategyRunner

__all__ = [
    "CycleResult",
    "RunnerSlot",
    "StrategyRunner",
]
