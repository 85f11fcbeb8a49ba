"""
Market data adapter: Hyperliquid L2 books and order status over the info API.

Any failure to read a book or an order is reported as TransientQueryError so
the strategy skips the cycle and asks again on the next one.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from hedgebot.core.errors import TransientQueryError
from hedgebot.core.types import BookSnapshot, Order, OrderStatus, PriceLevel, Side
from hedgebot.infra.async_info import AsyncInfo
from hedgebot.infra.logging_cfg import log_event

log = logging.getLogger("hedgebot")

_STATUS_MAP = {
    "open": OrderStatus.NEW,
    "triggered": OrderStatus.NEW,
    "filled": OrderStatus.FILLED,
    "rejected": OrderStatus.REJECTED,
}


def book_imbalance(bids: List[PriceLevel], asks: List[PriceLevel], depth: int) -> float:
    """(bid size - ask size) / (bid size + ask size) over the top `depth` levels."""
    bid_sz = sum(lvl.size for lvl in bids[:depth])
    ask_sz = sum(lvl.size for lvl in asks[:depth])
    total = bid_sz + ask_sz
    if total <= 0:
        return 0.0
    return (bid_sz - ask_sz) / total


def parse_order_status(instrument: str, payload: Dict[str, Any]) -> Order:
    """Map an orderStatus response onto Order. Raises TransientQueryError for unknown oids."""
    if not isinstance(payload, dict) or payload.get("status") != "order":
        raise TransientQueryError(f"order lookup returned {payload!r}", instrument=instrument)
    wrapper = payload.get("order") or {}
    raw = wrapper.get("order") or {}
    status_raw = str(wrapper.get("status", ""))
    status = _STATUS_MAP.get(status_raw)
    if status is None:
        status = OrderStatus.CANCELED if status_raw.lower().endswith("canceled") else OrderStatus.NEW
    try:
        sz = float(raw["sz"])
        orig_sz = float(raw.get("origSz", sz))
        order = Order(
            id=str(raw["oid"]),
            instrument=raw.get("coin", instrument),
            side=Side.BUY if raw["side"] == "B" else Side.SELL,
            price=float(raw["limitPx"]),
            quantity=orig_sz,
            status=status,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TransientQueryError(f"malformed order status: {exc}", instrument=instrument) from exc
    if order.status is OrderStatus.NEW and 0 < sz < orig_sz:
        order.status = OrderStatus.PARTIALLY_FILLED
    return order


class MarketData:
    def __init__(self, info: AsyncInfo, account: str, depth: int = 10) -> None:
        self.info = info
        self.account = account
        self.depth = depth

    async def get_order_book_l2(self, instrument: str) -> BookSnapshot:
        try:
            data = await self.info.l2_book(instrument)
        except httpx.HTTPError as exc:
            raise TransientQueryError(f"l2Book failed: {exc}", instrument=instrument) from exc
        try:
            raw_bids, raw_asks = data["levels"]
            bids = [PriceLevel(float(lvl["px"]), float(lvl["sz"])) for lvl in raw_bids]
            asks = [PriceLevel(float(lvl["px"]), float(lvl["sz"])) for lvl in raw_asks]
        except (KeyError, TypeError, ValueError) as exc:
            raise TransientQueryError(f"malformed l2Book: {exc}", instrument=instrument) from exc
        if not bids or not asks:
            raise TransientQueryError("empty book side", instrument=instrument)
        return BookSnapshot(
            instrument=instrument,
            bids=bids,
            asks=asks,
            imbalance=book_imbalance(bids, asks, self.depth),
            timestamp_ms=int(data.get("time", 0)),
        )

    async def get_order_by_id(self, instrument: str, order_id: str) -> Order:
        try:
            payload = await self.info.query_order_by_oid(self.account, int(order_id))
        except httpx.HTTPError as exc:
            raise TransientQueryError(f"orderStatus failed: {exc}", instrument=instrument, order_id=order_id) from exc
        try:
            return parse_order_status(instrument, payload)
        except TransientQueryError as exc:
            exc.order_id = order_id
            log_event(log, "order_status_unavailable", logging.DEBUG, instrument=instrument, oid=order_id)
            raise

