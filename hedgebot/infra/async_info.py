"""
Minimal async HTTP client for Hyperliquid info endpoints using HTTP/2.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx


class AsyncInfo:
    def __init__(self, base_url: str, timeout: float = 5.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = base_url.rstrip("/")
        # If a shared client is passed in, we won't close it in close(); otherwise we own the client.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(base_url=self.base_url, http2=True, timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def meta(self) -> Any:
        return await self._post_info({"type": "meta"})

    async def l2_book(self, coin: str) -> Any:
        """
        L2 snapshot: {"coin", "time", "levels": [bids, asks]}, each level
        {"px": str, "sz": str, "n": int}.
        """
        return await self._post_info({"type": "l2Book", "coin": coin})

    async def query_order_by_oid(self, account: str, oid: int) -> Any:
        """
        Query order status by order ID.
        SDK Reference: info.query_order_by_oid(user, oid)
        """
        return await self._post_info({"type": "orderStatus", "user": account, "oid": oid})

    async def _post_info(self, payload: dict[str, Any]) -> Any:
        resp = await self.client.post("/info", json=payload)
        resp.raise_for_status()
        return resp.json()
