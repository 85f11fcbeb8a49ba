"""
Boundary protocols between the strategy core and the exchange adapters.

The core only ever awaits these methods; it never speaks the wire protocol.
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from hedgebot.core.types import BookSnapshot, Order, OrderRequest, Side


@runtime_checkable
class ExchangePort(Protocol):
    async def place_limit_order(self, instrument: str, price: float, quantity: float, side: Side) -> Order:
        ...

    async def place_market_order(self, instrument: str, quantity: float, side: Side) -> Order:
        ...

    async def cancel(self, instrument: str, order_id: str) -> bool:
        """True iff the order was cancelled before any fill."""
        ...

    async def amend_order_price(self, instrument: str, order_id: str, quantity: float, price: float) -> Order:
        ...

    async def set_leverage(self, instrument: str, leverage: float) -> None:
        ...

    async def place_orders_bulk(self, requests: List[OrderRequest]) -> List[Order]:
        ...


@runtime_checkable
class MarketDataPort(Protocol):
    async def get_order_book_l2(self, instrument: str) -> BookSnapshot:
        ...

    async def get_order_by_id(self, instrument: str, order_id: str) -> Order:
        """Raises TransientQueryError when the lookup is momentarily unavailable."""
        ...


@runtime_checkable
class Strategy(Protocol):
    """Capability every strategy variant exposes to the runner."""

    name: str

    async def setup(self) -> None:
        ...

    async def poll_once(self) -> None:
        ...

    def reset(self) -> None:
        ...

    def snapshot(self) -> dict:
        ...
