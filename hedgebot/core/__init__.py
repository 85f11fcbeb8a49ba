"""
Core package.

Value types, exception hierarchy, port protocols and rounding helpers shared
by the strategy, feature and adapter packages.
"""

from hedgebot.core.errors import (
    ConfigError,
    ExchangeError,
    FeatureExtractionError,
    HedgeBotError,
    OrderRejectedError,
    TransientQueryError,
)
from hedgebot.core.ports import ExchangePort, MarketDataPort, Strategy
from hedgebot.core.rounding import get_round_price, round_half_up, round_venue_price
from hedgebot.core.types import (
    BookSnapshot,
    Order,
    OrderRequest,
    OrderStatus,
    OrderType,
    PriceLevel,
    Side,
)

__all__ = [
    "BookSnapshot",
    "ConfigError",
    "ExchangeError",
    "ExchangePort",
    "FeatureExtractionError",
    "HedgeBotError",
    "MarketDataPort",
    "Order",
    "OrderRejectedError",
    "OrderRequest",
    "OrderStatus",
    "OrderType",
    "PriceLevel",
    "Side",
    "Strategy",
    "TransientQueryError",
    "get_round_price",
    "round_half_up",
    "round_venue_price",
]
