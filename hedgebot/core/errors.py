"""
Exception hierarchy.

TransientQueryError is retried on the next cycle without touching state.
ExchangeError is logged and the cycle abandoned. Everything else reaches
the runner.
"""

from __future__ import annotations

from typing import Optional


class HedgeBotError(Exception):
    """Base class for all hedgebot errors."""


class ConfigError(HedgeBotError, ValueError):
    """Invalid or missing configuration."""


class TransientQueryError(HedgeBotError):
    """An order or book lookup failed in a way that is expected to clear up."""

    def __init__(self, message: str, instrument: Optional[str] = None, order_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.instrument = instrument
        self.order_id = order_id


class ExchangeError(HedgeBotError):
    """The exchange refused or failed a trading command."""

    def __init__(self, message: str, instrument: Optional[str] = None) -> None:
        super().__init__(message)
        self.instrument = instrument


class OrderRejectedError(ExchangeError):
    """An order was rejected with an explicit error status."""


class FeatureExtractionError(HedgeBotError, ValueError):
    """The snapshot history does not have the shape the extractor requires."""
