"""
Market data package.

This package contains the L2 book and order status adapter.
"""

from hedgebot.market_data.market_data import MarketData, book_imbalance, parse_order_status

__all__ = [
    "MarketData",
    "book_imbalance",
    "parse_order_status",
]
