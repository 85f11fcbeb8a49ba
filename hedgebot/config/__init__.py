"""
Configuration package.

This package contains environment settings and strategy instance loading.
"""

from hedgebot.config.config import Settings
from hedgebot.config.instance_config import InstanceConfig, load_instance_configs

__all__ = [
    "InstanceConfig",
    "Settings",
    "load_instance_configs",
]
