"""
Maker/hedge slot state.

One MakerHedgeState per configured instrument pair. It owns the four order
slots, the signed position and the running profit. A maker leg counts as
filled when the order in its slot is FILLED, so a fill without an order
cannot be represented.

Which hedge leg went out as a market order is stored once, as a side, so
both hedge legs can never claim to be the market fill at the same time.

Phases (derived, never stored):

    IDLE ──> MAKER_RESTING ──> HEDGING ──> MAKER_FILLED ──> ROUND_COMPLETE ──> IDLE
                  ^                 │
                  └─────────────────┘   (second maker leg still resting)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional

from hedgebot.core.types import Order, OrderStatus, Side


class Phase(Enum):
    IDLE = auto()            # All four slots empty
    MAKER_RESTING = auto()   # At least one maker quote resting, nothing filled
    HEDGING = auto()         # One maker leg filled and hedged at market, other leg pending
    MAKER_FILLED = auto()    # Both maker legs filled, waiting on the limit hedge
    ROUND_COMPLETE = auto()  # Both hedge legs filled, profit realized, about to reset


class SlotOccupiedError(RuntimeError):
    """Raised when an order is assigned to a slot that already holds one."""


class SlotEmptyError(RuntimeError):
    """Raised when a fill is recorded for a maker slot with no order in it."""


SLOTS = ("bid_order", "ask_order", "hedge_buy_order", "hedge_sell_order")
_MARKET_SLOT = {Side.BUY: "hedge_buy_order", Side.SELL: "hedge_sell_order"}


@dataclass
class MakerHedgeState:
    bid_order: Optional[Order] = None
    ask_order: Optional[Order] = None
    hedge_buy_order: Optional[Order] = None
    hedge_sell_order: Optional[Order] = None
    market_leg: Optional[Side] = None
    position: int = 0
    profit: float = 0.0
    rounds_completed: int = 0

    @property
    def bid_filled(self) -> bool:
        return self.bid_order is not None and self.bid_order.is_filled

    @property
    def ask_filled(self) -> bool:
        return self.ask_order is not None and self.ask_order.is_filled

    @property
    def hedge_buy_filled(self) -> bool:
        return self.market_leg is Side.BUY

    @property
    def hedge_sell_filled(self) -> bool:
        return self.market_leg is Side.SELL

    @property
    def both_filled(self) -> bool:
        return self.bid_filled and self.ask_filled

    @property
    def phase(self) -> Phase:
        if all(getattr(self, name) is None for name in SLOTS):
            return Phase.IDLE
        if self.both_filled:
            return Phase.MAKER_FILLED
        if self.bid_filled or self.ask_filled:
            return Phase.HEDGING
        return Phase.MAKER_RESTING

    def occupy(self, slot: str, order: Order) -> None:
        """Place order into an empty slot."""
        if slot not in SLOTS:
            raise KeyError(slot)
        if getattr(self, slot) is not None:
            raise SlotOccupiedError(f"{slot} already holds order {getattr(self, slot).id}")
        setattr(self, slot, order)

    def release(self, slot: str) -> None:
        """Empty a slot. Dropping the market hedge also clears market_leg."""
        if slot not in SLOTS:
            raise KeyError(slot)
        order = getattr(self, slot)
        if slot in ("bid_order", "ask_order") and order is not None and order.is_filled:
            raise SlotOccupiedError(f"{slot} {order.id} is filled and counted in the position")
        if slot == _MARKET_SLOT.get(self.market_leg):
            self.market_leg = None
        setattr(self, slot, None)

    def record_maker_fill(self, side: Side, contracts: int, market_hedge: Optional[Order] = None) -> None:
        """
        Mark a maker leg filled and move the position.

        market_hedge is the opposite-side hedge that was sent at market when
        the fill opened the position; it is None when the fill closed it.
        """
        slot = "bid_order" if side is Side.BUY else "ask_order"
        maker = getattr(self, slot)
        if maker is None:
            raise SlotEmptyError(f"no {slot} to mark filled")
        if maker.is_filled:
            raise SlotOccupiedError(f"{slot} {maker.id} is already filled")
        if market_hedge is not None:
            if self.market_leg is not None:
                raise SlotOccupiedError("a market hedge leg is already recorded")
            hedge_slot = "hedge_sell_order" if side is Side.BUY else "hedge_buy_order"
            self.occupy(hedge_slot, market_hedge)
            self.market_leg = side.opposite()
        maker.status = OrderStatus.FILLED
        self.position += contracts if side is Side.BUY else -contracts

    def realize(self, pnl: float) -> None:
        """Book a completed round and clear every slot."""
        self.profit += pnl
        self.rounds_completed += 1
        self.reset()

    def reset(self) -> None:
        """Clear slots, flags and position. Profit is kept."""
        self.bid_order = None
        self.ask_order = None
        self.hedge_buy_order = None
        self.hedge_sell_order = None
        self.market_leg = None
        self.position = 0

    def to_dict(self) -> Dict[str, Any]:
        def _oid(order: Optional[Order]) -> Optional[str]:
            return order.id if order is not None else None

        return {
            "phase": self.phase.name,
            "bid_order": _oid(self.bid_order),
            "ask_order": _oid(self.ask_order),
            "hedge_buy_order": _oid(self.hedge_buy_order),
            "hedge_sell_order": _oid(self.hedge_sell_order),
            "bid_filled": self.bid_filled,
            "ask_filled": self.ask_filled,
            "hedge_buy_filled": self.hedge_buy_filled,
            "hedge_sell_filled": self.hedge_sell_filled,
            "position": self.position,
            "profit": self.profit,
            "rounds_completed": self.rounds_completed,
        }
