"""
ExecutionGateway: Hyperliquid implementation of the exchange command port.

Wraps AsyncExchange and turns SDK responses into Order values:
- resting statuses become NEW orders
- filled statuses become FILLED orders carrying the average fill price
- error statuses raise OrderRejectedError
- transport failures and timeouts raise ExchangeError

Maker quotes go out post-only (ALO) so they never take liquidity.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from hyperliquid.utils.error import Error as HyperliquidError

from hedgebot.core.errors import ExchangeError, OrderRejectedError
from hedgebot.core.rounding import round_venue_price
from hedgebot.core.types import Order, OrderRequest, OrderStatus, OrderType, Side
from hedgebot.infra.logging_cfg import log_event

if TYPE_CHECKING:
    from hedgebot.infra.async_execution import AsyncExchange
    from hedgebot.infra.async_info import AsyncInfo

log = logging.getLogger("hedgebot")

POST_ONLY = {"limit": {"tif": "Alo"}}
GOOD_TIL_CANCEL = {"limit": {"tif": "Gtc"}}
IMMEDIATE_OR_CANCEL = {"limit": {"tif": "Ioc"}}

# Errors the SDK or its HTTP stack raise for a failed request.
_TRANSPORT_ERRORS = (HyperliquidError, asyncio.TimeoutError, OSError)


@dataclass
class ExecutionGatewayConfig:
    """Configuration for ExecutionGateway."""
    post_only_makers: bool = True
    market_slippage: Optional[float] = None  # None uses the SDK default
    is_cross: bool = True
    log_event_callback: Optional[Callable[..., None]] = None


class ExecutionGateway:
    def __init__(
        self,
        exchange: "AsyncExchange",
        info: Optional["AsyncInfo"] = None,
        config: Optional[ExecutionGatewayConfig] = None,
        account: Optional[str] = None,
    ) -> None:
        self.exchange = exchange
        self.info = info
        self.account = account
        self.config = config or ExecutionGatewayConfig()
        self.sz_decimals: Dict[str, int] = {}
        self._log_event = self.config.log_event_callback or self._default_log

    def _default_log(self, event: str, **kwargs: Any) -> None:
        log_event(log, event, **kwargs)

    async def initialize(self) -> None:
        """Load size decimals per instrument so prices can be rounded to venue rules."""
        if self.info is None:
            return
        meta = await self.info.meta()
        for asset in meta.get("universe", []):
            self.sz_decimals[asset["name"]] = int(asset.get("szDecimals", 0))

    def _px(self, instrument: str, price: float) -> float:
        return round_venue_price(price, self.sz_decimals.get(instrument, 0))

    # ========== Order Submission ==========

    async def place_limit_order(self, instrument: str, price: float, quantity: float, side: Side) -> Order:
        px = self._px(instrument, price)
        order_type = POST_ONLY if self.config.post_only_makers else GOOD_TIL_CANCEL
        result = await self._guard(
            "place_limit_order",
            instrument,
            self.exchange.order(instrument, side.is_buy, float(quantity), px, order_type),
        )
        order = self._parse_order(result, instrument, side, px, quantity)
        self._log_event("order_submitted", instrument=instrument, side=side.value, px=px, sz=quantity, oid=order.id, kind="limit")
        return order

    async def place_market_order(self, instrument: str, quantity: float, side: Side) -> Order:
        result = await self._guard(
            "place_market_order",
            instrument,
            self.exchange.market_open(instrument, side.is_buy, float(quantity), self.config.market_slippage),
        )
        order = self._parse_order(result, instrument, side, 0.0, quantity)
        if order.status is not OrderStatus.FILLED:
            raise OrderRejectedError(f"market order {order.id} on {instrument} did not fill", instrument=instrument)
        self._log_event("order_submitted", instrument=instrument, side=side.value, px=order.fill_price, sz=quantity, oid=order.id, kind="market")
        return order

    async def place_orders_bulk(self, requests: List[OrderRequest]) -> List[Order]:
        wire: List[Dict[str, Any]] = []
        for req in requests:
            if req.price is None:
                raise ValueError("bulk orders need a price; market legs use an IOC limit price")
            if req.order_type is OrderType.MARKET:
                order_type = IMMEDIATE_OR_CANCEL
            else:
                order_type = POST_ONLY if req.post_only else GOOD_TIL_CANCEL
            wire.append({
                "coin": req.instrument,
                "is_buy": req.side.is_buy,
                "sz": float(req.quantity),
                "limit_px": self._px(req.instrument, req.price),
                "order_type": order_type,
                "reduce_only": req.reduce_only,
            })
        if not wire:
            return []
        result = await self._guard("place_orders_bulk", None, self.exchange.bulk_orders(wire))
        statuses = self._statuses(result, None)
        if len(statuses) != len(requests):
            raise ExchangeError(f"bulk order returned {len(statuses)} statuses for {len(requests)} requests")
        return [
            self._order_from_status(st, req.instrument, req.side, w["limit_px"], req.quantity)
            for st, req, w in zip(statuses, requests, wire)
        ]

    # ========== Order Maintenance ==========

    async def cancel(self, instrument: str, order_id: str) -> bool:
        result = await self._guard("cancel", instrument, self.exchange.cancel(instrument, int(order_id)))
        statuses = self._statuses(result, instrument)
        ok = bool(statuses) and statuses[0] == "success"
        self._log_event("order_cancel", instrument=instrument, oid=order_id, success=ok)
        return ok

    async def amend_order_price(self, instrument: str, order_id: str, quantity: float, price: float) -> Order:
        # The modify action needs the side, which the order status lookup provides.
        px = self._px(instrument, price)
        side = await self._order_side(instrument, order_id)
        order_type = POST_ONLY if self.config.post_only_makers else GOOD_TIL_CANCEL
        result = await self._guard(
            "amend_order_price",
            instrument,
            self.exchange.modify_order(int(order_id), instrument, side.is_buy, float(quantity), px, order_type),
        )
        statuses = self._statuses(result, instrument)
        if statuses and isinstance(statuses[0], dict) and ("resting" in statuses[0] or "filled" in statuses[0]):
            return self._order_from_status(statuses[0], instrument, side, px, quantity)
        # Plain "success" replies keep the same oid.
        return Order(id=str(order_id), instrument=instrument, side=side, price=px, quantity=quantity)

    async def set_leverage(self, instrument: str, leverage: float) -> None:
        result = await self._guard(
            "set_leverage",
            instrument,
            self.exchange.update_leverage(int(leverage), instrument, self.config.is_cross),
        )
        if not isinstance(result, dict) or result.get("status") != "ok":
            raise ExchangeError(f"update_leverage failed: {result!r}", instrument=instrument)
        self._log_event("leverage_set", instrument=instrument, leverage=int(leverage))

    # ========== Helpers ==========

    async def _order_side(self, instrument: str, order_id: str) -> Side:
        if self.info is None:
            raise ExchangeError("amend needs the info client to resolve the order side", instrument=instrument)
        try:
            payload = await self.info.query_order_by_oid(self._account(), int(order_id))
            raw = payload["order"]["order"]
        except (KeyError, TypeError) as exc:
            raise ExchangeError(f"cannot resolve side of order {order_id}", instrument=instrument) from exc
        return Side.BUY if raw["side"] == "B" else Side.SELL

    def _account(self) -> str:
        if not self.account:
            raise ExchangeError("gateway has no account address")
        return self.account

    async def _guard(self, action: str, instrument: Optional[str], call) -> Any:
        try:
            return await call
        except _TRANSPORT_ERRORS as exc:
            raise ExchangeError(f"{action} failed: {exc}", instrument=instrument) from exc

    def _statuses(self, result: Any, instrument: Optional[str]) -> List[Any]:
        if not isinstance(result, dict) or result.get("status") != "ok":
            raise OrderRejectedError(f"exchange error: {result!r}", instrument=instrument)
        response = result.get("response") or {}
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, dict):
            return []
        return list(data.get("statuses") or [])

    def _parse_order(self, result: Any, instrument: str, side: Side, px: float, quantity: float) -> Order:
        statuses = self._statuses(result, instrument)
        if not statuses:
            raise OrderRejectedError(f"no order status in {result!r}", instrument=instrument)
        return self._order_from_status(statuses[0], instrument, side, px, quantity)

    def _order_from_status(self, status: Any, instrument: str, side: Side, px: float, quantity: float) -> Order:
        if not isinstance(status, dict):
            raise OrderRejectedError(f"unexpected order status {status!r}", instrument=instrument)
        if "error" in status:
            raise OrderRejectedError(str(status["error"]), instrument=instrument)
        if "resting" in status:
            return Order(
                id=str(status["resting"]["oid"]),
                instrument=instrument,
                side=side,
                price=px,
                quantity=quantity,
                status=OrderStatus.NEW,
            )
        if "filled" in status:
            filled = status["filled"]
            avg_px = float(filled["avgPx"])
            return Order(
                id=str(filled["oid"]),
                instrument=instrument,
                side=side,
                price=px or avg_px,
                quantity=float(filled.get("totalSz", quantity)),
                status=OrderStatus.FILLED,
                avg_price=avg_px,
            )
        raise OrderRejectedError(f"unexpected order status {status!r}", instrument=instrument)
