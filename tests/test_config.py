"""Tests for environment-driven Settings."""

import pytest

from hedgebot.config.config import Settings
from hedgebot.core.errors import ConfigError

ENV_KEYS = (
    "HB_BASE_URL", "HB_PRIVATE_KEY", "HB_AGENT_KEY", "HB_USER_ADDRESS", "HB_INSTANCES_CONFIG",
    "HB_FEE", "HB_REBATE", "HB_TICK", "HB_LOOP_INTERVAL_SEC", "HB_HTTP_TIMEOUT", "HB_METRICS_PORT",
    "HB_METRICS_TOKEN", "HB_FEATURE_HISTORY", "HB_BOOK_DEPTH", "HB_ERROR_THRESHOLD",
    "HB_ERROR_COOLDOWN_SEC", "HB_LOG_FILE", "HB_LOG_LEVEL",
)

# A well-known throwaway key; never holds funds.
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    cfg = Settings.load()
    assert cfg.fee == 0.00075
    assert cfg.rebate == 0.00025
    assert cfg.tick == 0.5
    assert cfg.feature_history == 10
    assert cfg.instances_path == "configs/instances.yaml"
    assert cfg.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("HB_FEE", "0.0005")
    monkeypatch.setenv("HB_TICK", "1")
    monkeypatch.setenv("HB_METRICS_PORT", "9200")
    monkeypatch.setenv("HB_LOG_LEVEL", "debug")
    cfg = Settings.load()
    assert cfg.fee == 0.0005
    assert cfg.metrics_port == 9200
    assert cfg.log_level == "DEBUG"
    pricing = cfg.pricing
    assert pricing.fee == 0.0005
    assert pricing.tick == 1.0


@pytest.mark.parametrize(
    "key,value",
    [
        ("HB_FEE", "abc"),
        ("HB_FEE", "-0.1"),
        ("HB_TICK", "0"),
        ("HB_METRICS_PORT", "ninety"),
        ("HB_FEATURE_HISTORY", "1"),
        ("HB_BOOK_DEPTH", "0"),
        ("HB_ERROR_THRESHOLD", "0"),
        ("HB_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError):
        Settings.load()


def test_feature_history_can_be_disabled(monkeypatch):
    monkeypatch.setenv("HB_FEATURE_HISTORY", "0")
    assert Settings.load().feature_history == 0


def test_dump_masks_secrets(monkeypatch):
    monkeypatch.setenv("HB_PRIVATE_KEY", TEST_KEY)
    monkeypatch.setenv("HB_METRICS_TOKEN", "s3cret")
    dumped = Settings.load().dump()
    assert dumped["private_key"] == "***"
    assert dumped["metrics_token"] == "***"


def test_resolve_account_and_signer(monkeypatch):
    monkeypatch.setenv("HB_PRIVATE_KEY", TEST_KEY)
    cfg = Settings.load()
    signer = cfg.resolve_signer()
    assert cfg.resolve_account() == signer.address


def test_resolve_account_from_address(monkeypatch):
    monkeypatch.setenv("HB_USER_ADDRESS", "0x0000000000000000000000000000000000000001")
    cfg = Settings.load()
    assert cfg.resolve_account() == "0x0000000000000000000000000000000000000001"
    with pytest.raises(ConfigError):
        cfg.resolve_signer()


def test_missing_credentials():
    cfg = Settings.load()
    with pytest.raises(ConfigError):
        cfg.resolve_account()
