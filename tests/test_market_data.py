"""Tests for the Hyperliquid market data adapter."""

from unittest.mock import AsyncMock

import httpx
import pytest

from hedgebot.core.errors import TransientQueryError
from hedgebot.core.types import OrderStatus, PriceLevel, Side
from hedgebot.market_data.market_data import MarketData, book_imbalance, parse_order_status


def _level(px, sz):
    return {"px": str(px), "sz": str(sz), "n": 1}


def _status(status, side="B", sz="0.0", orig="10.0", oid=77, px="100.5"):
    return {
        "status": "order",
        "order": {
            "order": {"coin": "BTC", "side": side, "limitPx": px, "sz": sz, "origSz": orig, "oid": oid},
            "status": status,
            "statusTimestamp": 1700000000000,
        },
    }


@pytest.fixture
def info():
    return AsyncMock()


@pytest.mark.asyncio
async def test_l2_book_parsing_and_imbalance(info):
    info.l2_book.return_value = {
        "coin": "BTC",
        "time": 1700000000123,
        "levels": [
            [_level(100.0, 3), _level(99.5, 1)],
            [_level(100.5, 1), _level(101.0, 1)],
        ],
    }
    md = MarketData(info, "0xabc", depth=10)

    book = await md.get_order_book_l2("BTC")

    assert book.best_bid == PriceLevel(100.0, 3.0)
    assert book.best_ask == PriceLevel(100.5, 1.0)
    assert book.imbalance == pytest.approx((4 - 2) / 6)
    assert book.timestamp_ms == 1700000000123
    info.l2_book.assert_awaited_once_with("BTC")


def test_book_imbalance_respects_depth():
    bids = [PriceLevel(100.0, 1.0), PriceLevel(99.0, 100.0)]
    asks = [PriceLevel(101.0, 3.0), PriceLevel(102.0, 1.0)]
    assert book_imbalance(bids, asks, depth=1) == pytest.approx(-0.5)
    assert book_imbalance([], [], depth=5) == 0.0


@pytest.mark.asyncio
async def test_l2_book_transport_error_is_transient(info):
    info.l2_book.side_effect = httpx.ConnectError("connection refused")
    md = MarketData(info, "0xabc")
    with pytest.raises(TransientQueryError):
        await md.get_order_book_l2("BTC")


@pytest.mark.asyncio
async def test_l2_book_empty_side_is_transient(info):
    info.l2_book.return_value = {"coin": "BTC", "time": 1, "levels": [[], [_level(100.5, 1)]]}
    md = MarketData(info, "0xabc")
    with pytest.raises(TransientQueryError):
        await md.get_order_book_l2("BTC")


@pytest.mark.asyncio
async def test_order_lookup_filled(info):
    info.query_order_by_oid.return_value = _status("filled")
    md = MarketData(info, "0xabc")

    order = await md.get_order_by_id("BTC", "77")

    assert order.id == "77"
    assert order.status is OrderStatus.FILLED
    assert order.side is Side.BUY
    assert order.price == 100.5
    assert order.quantity == 10.0
    info.query_order_by_oid.assert_awaited_once_with("0xabc", 77)


@pytest.mark.parametrize(
    "raw,sz,expected",
    [
        ("open", "10.0", OrderStatus.NEW),
        ("open", "4.0", OrderStatus.PARTIALLY_FILLED),
        ("canceled", "10.0", OrderStatus.CANCELED),
        ("marginCanceled", "10.0", OrderStatus.CANCELED),
        ("rejected", "10.0", OrderStatus.REJECTED),
    ],
)
def test_parse_order_status_mapping(raw, sz, expected):
    assert parse_order_status("BTC", _status(raw, sz=sz)).status is expected


def test_parse_order_status_sell_side():
    assert parse_order_status("BTC", _status("open", side="A", sz="10.0")).side is Side.SELL


@pytest.mark.asyncio
async def test_unknown_oid_is_transient(info):
    info.query_order_by_oid.return_value = {"status": "unknownOid"}
    md = MarketData(info, "0xabc")
    with pytest.raises(TransientQueryError) as exc_info:
        await md.get_order_by_id("BTC", "77")
    assert exc_info.value.order_id == "77"


@pytest.mark.asyncio
async def test_order_lookup_http_error_is_transient(info):
    request = httpx.Request("POST", "https://api.hyperliquid.xyz/info")
    response = httpx.Response(429, request=request)
    info.query_order_by_oid.side_effect = httpx.HTTPStatusError("rate limited", request=request, response=response)
    md = MarketData(info, "0xabc")
    with pytest.raises(TransientQueryError):
        await md.get_order_by_id("BTC", "77")
