"""
Pytest configuration and fixtures.
Adds the repo root to sys.path so tests can import hedgebot without installing it.
"""

import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from hedgebot.core.types import BookSnapshot, PriceLevel  # noqa: E402


def build_book(
    instrument: str = "BTC",
    best_bid: float = 10000.0,
    best_ask: float = 10001.0,
    imbalance: float = 0.0,
    levels: int = 10,
    step: float = 0.5,
    bid_size: float = 5.0,
    ask_size: float = 4.0,
) -> BookSnapshot:
    bids = [PriceLevel(best_bid - i * step, bid_size + i) for i in range(levels)]
    asks = [PriceLevel(best_ask + i * step, ask_size + 2 * i) for i in range(levels)]
    return BookSnapshot(instrument=instrument, bids=bids, asks=asks, imbalance=imbalance)


@pytest.fixture
def make_book():
    return build_book
