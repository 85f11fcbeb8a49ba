"""
Price rounding helpers.

Prices are rounded half-up (floor(x + 0.5)), never to even.
"""

from __future__ import annotations

import math

__all__ = ["round_half_up", "get_round_price", "round_venue_price"]


def round_half_up(value: float) -> float:
    """Round to the nearest integer, ties toward positive infinity."""
    return float(math.floor(value + 0.5))


def get_round_price(price: float, spread: float, tick: float) -> float:
    """
    Scale price by spread and round it onto the tick grid, biased upward.

    If the scaled value sits strictly below its rounded integer the integer is
    used, otherwise the integer plus one tick. A value exactly halfway between
    two integers therefore rounds up, and a value at or just above an integer
    moves up by one tick.
    """
    scaled = price * spread
    rounded = round_half_up(scaled)
    if scaled < rounded:
        return rounded
    return rounded + tick


def round_venue_price(px: float, sz_decimals: int = 0, is_perp: bool = True) -> float:
    """
    Hyperliquid price rounding per docs:
    - Perps: up to 5 significant figures, and at most (6 - szDecimals) decimals.
    - Spot:   up to 5 significant figures, and at most (8 - szDecimals) decimals.
    - If px > 100_000, round to int.
    """
    if px > 100_000:
        return round(px)
    max_decimals = (6 - sz_decimals) if is_perp else (8 - sz_decimals)
    max_decimals = max(0, max_decimals)
    sig5 = float(f"{px:.5g}")
    return round(sig5, max_decimals)
