"""
Infrastructure package.

This package contains the async exchange/info clients and logging configuration.
"""

from hedgebot.infra.async_execution import AsyncExchange
from hedgebot.infra.async_info import AsyncInfo
from hedgebot.infra.logging_cfg import build_logger, log_event

__all__ = [
    "AsyncExchange",
    "AsyncInfo",
    "build_logger",
    "log_event",
]
