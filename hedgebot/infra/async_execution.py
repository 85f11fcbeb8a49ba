"""
Async wrapper around the blocking Hyperliquid Exchange using a shared thread pool.

Order-creating calls are never retried here: a timeout does not prove the
order was not accepted, and a blind retry could double the position.
"""

from __future__ import annotations

import asyncio
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional


class AsyncExchange:
    def __init__(self, exchange, timeout: float = 5.0, max_workers: int = 4) -> None:
        self._exchange = exchange
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="hl-exec")

    async def order(self, name: str, is_buy: bool, sz: float, limit_px: float, order_type: Dict[str, Any], reduce_only: bool = False) -> Any:
        return await self._call(lambda: self._exchange.order(name, is_buy, sz, limit_px, order_type, reduce_only=reduce_only))

    async def market_open(self, name: str, is_buy: bool, sz: float, slippage: Optional[float] = None) -> Any:
        if slippage is None:
            return await self._call(lambda: self._exchange.market_open(name, is_buy, sz))
        return await self._call(lambda: self._exchange.market_open(name, is_buy, sz, None, slippage))

    async def bulk_orders(self, order_requests: List[Dict[str, Any]]) -> Any:
        return await self._call(lambda: self._exchange.bulk_orders(order_requests))

    async def modify_order(self, oid: int, name: str, is_buy: bool, sz: float, limit_px: float, order_type: Dict[str, Any]) -> Any:
        return await self._call(lambda: self._exchange.modify_order(oid, name, is_buy, sz, limit_px, order_type))

    async def cancel(self, name: str, oid: int) -> Any:
        return await self._call(lambda: self._exchange.cancel(name, oid), retries=2)

    async def update_leverage(self, leverage: int, name: str, is_cross: bool = True) -> Any:
        return await self._call(lambda: self._exchange.update_leverage(leverage, name, is_cross), retries=2)

    async def close(self, wait: bool = True) -> None:
        # prefer graceful shutdown to avoid leaking threads between restarts
        self._executor.shutdown(wait=wait)

    async def _call(self, fn, retries: int = 0) -> Any:
        loop = asyncio.get_running_loop()
        backoff = 0.2
        for attempt in range(retries + 1):
            try:
                return await asyncio.wait_for(loop.run_in_executor(self._executor, fn), timeout=self._timeout)
            except Exception:
                if attempt >= retries:
                    raise
                await asyncio.sleep(backoff + random.uniform(0, backoff * 0.5))
                backoff *= 2
