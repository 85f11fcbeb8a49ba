"""Load strategy instance definitions from YAML.

Optional file path via env `HB_INSTANCES_CONFIG`, default `configs/instances.yaml`.

    instances:
      - make: BTC
        hedge: ETH
        contracts: 100
        leverage: 5
        imbalance: 0.3
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

from hedgebot.core.errors import ConfigError


@dataclass(frozen=True)
class InstanceConfig:
    make: str
    hedge: str
    contracts: int
    leverage: float
    imbalance: float
    strategy: str = "maker_hedge"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], index: int = 0) -> "InstanceConfig":
        missing = [k for k in ("make", "hedge", "contracts", "leverage", "imbalance") if k not in raw]
        if missing:
            raise ConfigError(f"instance {index}: missing {', '.join(missing)}")
        try:
            cfg = cls(
                make=str(raw["make"]),
                hedge=str(raw["hedge"]),
                contracts=int(raw["contracts"]),
                leverage=float(raw["leverage"]),
                imbalance=float(raw["imbalance"]),
                strategy=str(raw.get("strategy", "maker_hedge")),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"instance {index}: {exc}") from exc
        cfg._validate(index)
        return cfg

    def _validate(self, index: int) -> None:
        if not self.make or not self.hedge:
            raise ConfigError(f"instance {index}: make and hedge must be set")
        if self.make == self.hedge:
            raise ConfigError(f"instance {index}: make and hedge must differ ({self.make})")
        if self.contracts <= 0:
            raise ConfigError(f"instance {index}: contracts must be > 0")
        if self.leverage <= 0:
            raise ConfigError(f"instance {index}: leverage must be > 0")
        if not 0 <= self.imbalance <= 1:
            raise ConfigError(f"instance {index}: imbalance must be within [0, 1]")


def load_instance_configs(path: str | None = None) -> List[InstanceConfig]:
    if path is None:
        path = os.getenv("HB_INSTANCES_CONFIG", "configs/instances.yaml")
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"instances config not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"cannot parse {p}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("instances"), list):
        raise ConfigError(f"{p}: expected a top-level 'instances' list")
    entries = data["instances"]
    if not entries:
        raise ConfigError(f"{p}: no strategy instances configured")
    configs = []
    for idx, raw in enumerate(entries):
        if not isinstance(raw, dict):
            raise ConfigError(f"instance {idx}: expected a mapping")
        configs.append(InstanceConfig.from_dict(raw, idx))
    return configs
