"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from hedgebot.core.errors import ConfigError

load_dotenv()


def _int_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _float_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    base_url: str
    private_key: str | None
    agent_key: str | None
    user_address: str | None
    instances_path: str
    fee: float
    rebate: float
    tick: float
    loop_interval: float
    http_timeout: float
    metrics_port: int
    metrics_token: str | None
    feature_history: int  # 0 disables feature extraction
    book_depth: int
    error_threshold: int
    error_cooldown_sec: float
    log_file: str | None
    log_level: str

    def dump(self) -> dict:
        """Return a dict of settings for sanity checks/logging, without secrets."""
        out = self.__dict__.copy()
        for secret in ("private_key", "agent_key", "metrics_token"):
            if out.get(secret):
                out[secret] = "***"
        return out

    @property
    def pricing(self):
        from hedgebot.strategy.pricing import PricingConfig

        return PricingConfig(fee=self.fee, rebate=self.rebate, tick=self.tick)

    @classmethod
    def load(cls) -> "Settings":
        cfg = cls(
            base_url=os.getenv("HB_BASE_URL", "https://api.hyperliquid.xyz"),
            private_key=os.getenv("HB_PRIVATE_KEY"),
            agent_key=os.getenv("HB_AGENT_KEY"),
            user_address=os.getenv("HB_USER_ADDRESS"),
            instances_path=os.getenv("HB_INSTANCES_CONFIG", "configs/instances.yaml"),
            fee=_float_env("HB_FEE", 0.00075),
            rebate=_float_env("HB_REBATE", 0.00025),
            tick=_float_env("HB_TICK", 0.5),
            loop_interval=_float_env("HB_LOOP_INTERVAL_SEC", 1.0),
            http_timeout=_float_env("HB_HTTP_TIMEOUT", 5.0),
            metrics_port=_int_env("HB_METRICS_PORT", 9095),
            metrics_token=os.getenv("HB_METRICS_TOKEN"),
            feature_history=_int_env("HB_FEATURE_HISTORY", 10),
            book_depth=_int_env("HB_BOOK_DEPTH", 10),
            error_threshold=_int_env("HB_ERROR_THRESHOLD", 5),
            error_cooldown_sec=_float_env("HB_ERROR_COOLDOWN_SEC", 10.0),
            log_file=os.getenv("HB_LOG_FILE", "hedgebot.log") or None,
            log_level=os.getenv("HB_LOG_LEVEL", "INFO").upper(),
        )
        cfg._validate()
        _sanity_check(cfg)
        return cfg

    def resolve_account(self) -> str:
        if self.private_key:
            from eth_account import Account

            return Account.from_key(self.private_key).address
        if self.user_address:
            return self.user_address
        raise ConfigError("Missing HB_USER_ADDRESS or HB_PRIVATE_KEY")

    def resolve_signer(self):
        from eth_account import Account

        if self.private_key:
            return Account.from_key(self.private_key)
        if self.agent_key:
            return Account.from_key(self.agent_key)
        raise ConfigError("Missing credentials: set HB_PRIVATE_KEY or HB_AGENT_KEY")

    def _validate(self) -> None:
        if self.fee < 0 or self.rebate < 0:
            raise ConfigError("HB_FEE and HB_REBATE must be >= 0")
        if self.tick <= 0:
            raise ConfigError("HB_TICK must be > 0")
        if self.loop_interval < 0:
            raise ConfigError("HB_LOOP_INTERVAL_SEC must be >= 0")
        if self.http_timeout <= 0:
            raise ConfigError("HB_HTTP_TIMEOUT must be > 0")
        if self.feature_history != 0 and self.feature_history < 2:
            raise ConfigError("HB_FEATURE_HISTORY must be 0 (disabled) or >= 2")
        if self.book_depth < 1:
            raise ConfigError("HB_BOOK_DEPTH must be >= 1")
        if self.error_threshold < 1:
            raise ConfigError("HB_ERROR_THRESHOLD must be >= 1")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigError(f"HB_LOG_LEVEL {self.log_level!r} is not a logging level")

        logger = logging.getLogger("hedgebot")
        if self.loop_interval < 0.2:
            logger.warning(
                f"WARNING: HB_LOOP_INTERVAL_SEC is {self.loop_interval}s. "
                "Polling this fast will hit exchange rate limits."
            )
        if self.rebate > self.fee:
            logger.warning(
                f"WARNING: HB_REBATE ({self.rebate}) exceeds HB_FEE ({self.fee}). "
                "Check the fee schedule of the venue."
            )


def _sanity_check(cfg: Settings) -> None:
    """
    Log critical settings once at startup so overrides are obvious.
    """
    logger = logging.getLogger("hedgebot")
    payload = {
        "event": "config_loaded",
        "fee": cfg.fee,
        "rebate": cfg.rebate,
        "tick": cfg.tick,
        "loop_interval": cfg.loop_interval,
        "feature_history": cfg.feature_history,
        "instances_path": cfg.instances_path,
    }
    logger.info(json.dumps(payload))
