"""
Shared value types: book levels, snapshots, orders and order requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Side(Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def is_buy(self) -> bool:
        return self is Side.BUY

    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class OrderStatus(Enum):
    """
    Exchange-reported order status.

    NEW covers any resting order that has not traded yet.
    """
    NEW = "new"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELED = "canceled"
    REJECTED = "rejected"


class OrderType(Enum):
    LIMIT = "limit"
    MARKET = "market"


@dataclass(frozen=True)
class PriceLevel:
    price: float
    size: float


@dataclass(frozen=True)
class BookSnapshot:
    """
    Point-in-time L2 book for one instrument.

    bids are sorted by descending price, asks by ascending price.
    imbalance is computed by the adapter and is treated as opaque in [-1, 1].
    """
    instrument: str
    bids: List[PriceLevel]
    asks: List[PriceLevel]
    imbalance: float = 0.0
    timestamp_ms: int = 0

    @property
    def best_bid(self) -> PriceLevel:
        return self.bids[0]

    @property
    def best_ask(self) -> PriceLevel:
        return self.asks[0]

    @property
    def depth(self) -> int:
        return min(len(self.bids), len(self.asks))


@dataclass
class Order:
    id: str
    instrument: str
    side: Side
    price: float
    quantity: float
    status: OrderStatus = OrderStatus.NEW
    avg_price: Optional[float] = None

    @property
    def fill_price(self) -> float:
        """Average execution price when known, otherwise the order price."""
        if self.avg_price is not None and self.avg_price > 0:
            return self.avg_price
        return self.price

    @property
    def is_filled(self) -> bool:
        return self.status is OrderStatus.FILLED

    @property
    def is_open(self) -> bool:
        return self.status is OrderStatus.NEW


@dataclass
class OrderRequest:
    instrument: str
    side: Side
    quantity: float
    price: Optional[float] = None
    order_type: OrderType = OrderType.LIMIT
    post_only: bool = True
    reduce_only: bool = False
    metadata: dict = field(default_factory=dict)
