"""StrategyFactory to create pluggable strategy instances by name.

Variants share the setup/poll_once/reset capability and are composed by the
runner; they do not inherit from a common base.
"""

from __future__ import annotations

from typing import Any

from hedgebot.config.instance_config import InstanceConfig
from hedgebot.strategy.maker_hedge import MakerHedgeStrategy


class StrategyFactory:
    _registry: dict[str, Any] = {
        "maker_hedge": MakerHedgeStrategy,
    }

    @classmethod
    def register(cls, name: str, ctor: Any) -> None:
        cls._registry[name] = ctor

    @classmethod
    def create(cls, cfg: InstanceConfig, exchange, market, **kwargs):
        ctor = cls._registry.get(cfg.strategy)
        if ctor is None:
            raise ValueError(f"unknown strategy: {cfg.strategy}")
        return ctor(cfg, exchange, market, **kwargs)
