"""
Maker/hedge strategy: quote one instrument, hedge fills on another.

Each poll cycle reads the maker book and fires at most one maker action, in
priority order:

1. no bid resting and imbalance below -threshold: post a bid at the best bid
2. no ask resting and imbalance above threshold: post an ask at the best ask
3. bid resting and unfilled: hedge it at market if filled, requote if the
   touch moved away from it
4. ask resting and unfilled: mirror of 3

Once both maker legs are filled the hedging phase runs in the same cycle:
the missing hedge leg is posted as a limit order, and when it fills the
round's profit is booked and the state resets.

A cycle mutates state only after the exchange call it depends on returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from hedgebot.config.instance_config import InstanceConfig
from hedgebot.core.errors import ExchangeError, TransientQueryError
from hedgebot.core.ports import ExchangePort, MarketDataPort
from hedgebot.core.types import BookSnapshot, Order, OrderStatus, Side
from hedgebot.features.history import SnapshotHistory
from hedgebot.infra.logging_cfg import log_event
from hedgebot.strategy.maker_hedge_state import MakerHedgeState, Phase
from hedgebot.strategy.pricing import HedgePricer, PricingConfig, leverage_for_price

if TYPE_CHECKING:
    from hedgebot.monitoring.metrics_rich import RichMetrics

log = logging.getLogger("hedgebot")

FeatureSink = Callable[[str, Dict[str, float]], Any]

# Statuses after which a venue order can no longer fill.
DEAD_STATUSES = (OrderStatus.CANCELED, OrderStatus.REJECTED)


class MakerHedgeStrategy:
    """One maker/hedge instrument pair."""

    def __init__(
        self,
        config: InstanceConfig,
        exchange: ExchangePort,
        market: MarketDataPort,
        pricing: Optional[PricingConfig] = None,
        history: Optional[SnapshotHistory] = None,
        feature_sink: Optional[FeatureSink] = None,
        metrics: Optional["RichMetrics"] = None,
        log_event: Optional[Callable[..., None]] = None,
    ) -> None:
        self.config = config
        self.make = config.make
        self.hedge = config.hedge
        self.contracts = config.contracts
        self.leverage = config.leverage
        self.threshold = config.imbalance
        self.exchange = exchange
        self.market = market
        self.pricer = HedgePricer(config.contracts, pricing)
        self.history = history
        self.feature_sink = feature_sink or self._default_feature_sink
        self.metrics = metrics
        self.state = MakerHedgeState()
        self.name = f"{self.make}/{self.hedge}"
        self._lock = asyncio.Lock()
        self._last_book: Optional[BookSnapshot] = None
        self._log_event = log_event or self._default_log

    def _default_log(self, event: str, **kwargs: Any) -> None:
        log_event(log, event, make=self.make, hedge=self.hedge, **kwargs)

    def _default_feature_sink(self, instrument: str, features: Dict[str, float]) -> None:
        log_event(log, "features_ready", logging.DEBUG, instrument=instrument, count=len(features))

    @property
    def profit(self) -> float:
        return self.state.profit

    @property
    def position(self) -> int:
        return self.state.position

    async def setup(self) -> None:
        """Apply the configured leverage to both instruments."""
        await self.exchange.set_leverage(self.make, self.leverage)
        await self.exchange.set_leverage(self.hedge, self.leverage)
        # No reconciliation: orders left resting by a previous process stay unknown here.
        self._log_event("strategy_setup", leverage=self.leverage, contracts=self.contracts, imbalance=self.threshold)

    def reset(self) -> None:
        self.state.reset()

    async def poll_once(self) -> None:
        """
        Run one full cycle.

        Transient lookup failures and exchange faults end the cycle quietly;
        anything else propagates to the runner.
        """
        async with self._lock:
            try:
                await self._cycle()
            except TransientQueryError as exc:
                self._log_event("order_query_transient", order_id=exc.order_id, err=str(exc))
                self._count_error("transient")
            except ExchangeError as exc:
                log_event(
                    log,
                    "exchange_error",
                    logging.WARNING,
                    make=self.make,
                    hedge=self.hedge,
                    err=str(exc),
                    phase=self.state.phase.name,
                )
                self._count_error("exchange")
            finally:
                self._publish_gauges()

    async def _cycle(self) -> None:
        book = await self.market.get_order_book_l2(self.make)
        self._last_book = book
        self._record_features(book)
        await self._maker_step(book)
        if self.state.both_filled:
            await self._hedge_step()

    # ========== Maker legs ==========

    async def _maker_step(self, book: BookSnapshot) -> None:
        state = self.state
        imbalance = book.imbalance
        best_bid = book.best_bid.price
        best_ask = book.best_ask.price

        if state.bid_order is None and imbalance < -self.threshold:
            order = await self.exchange.place_limit_order(self.make, best_bid, self.contracts, Side.BUY)
            state.occupy("bid_order", order)
            self._order_placed(order, "maker_bid", imbalance=imbalance)
        elif state.ask_order is None and imbalance > self.threshold:
            order = await self.exchange.place_limit_order(self.make, best_ask, self.contracts, Side.SELL)
            state.occupy("ask_order", order)
            self._order_placed(order, "maker_ask", imbalance=imbalance)
        elif state.bid_order is not None and not state.bid_filled:
            await self._check_maker_leg(Side.BUY, best_bid)
        elif state.ask_order is not None and not state.ask_filled:
            await self._check_maker_leg(Side.SELL, best_ask)

    async def _check_maker_leg(self, side: Side, touch: float) -> None:
        state = self.state
        slot = "bid_order" if side is Side.BUY else "ask_order"
        resting: Order = getattr(state, slot)
        current = await self.market.get_order_by_id(self.make, resting.id)

        if current.is_filled:
            hedge = None
            if state.position == 0:
                hedge = await self.exchange.place_market_order(self.hedge, self.contracts, side.opposite())
            # Keep the executed price on the slot for the hedge formulas.
            resting.price = current.price
            state.record_maker_fill(side, self.contracts, market_hedge=hedge)
            self._log_event(
                "maker_filled",
                side=side.value,
                px=current.price,
                oid=current.id,
                position=state.position,
                market_hedge=hedge.id if hedge else None,
                hedge_px=hedge.fill_price if hedge else None,
            )
            if hedge is not None:
                self._count_hedge(hedge, "market")
        elif current.is_open and touch != current.price:
            cancelled = await self.exchange.cancel(self.make, resting.id)
            if cancelled:
                state.release(slot)
                if self.metrics:
                    self.metrics.orders_cancelled.labels(instrument=self.make, reason="requote").inc()
            self._log_event(
                "maker_requote",
                side=side.value,
                oid=resting.id,
                resting_px=current.price,
                touch_px=touch,
                cancelled=cancelled,
            )
        elif current.status in DEAD_STATUSES:
            state.release(slot)
            self._order_lost("maker_order_lost", current, side=side.value)

    # ========== Hedge legs ==========

    async def _hedge_step(self) -> None:
        state = self.state
        bid_px = state.bid_order.price
        ask_px = state.ask_order.price

        if state.hedge_buy_order is None and state.hedge_sell_order is not None:
            price = self.pricer.limit_hedge_buy_price(bid_px, ask_px, state.hedge_sell_order.fill_price)
            order = await self.exchange.place_limit_order(self.hedge, price, self.contracts, Side.BUY)
            state.occupy("hedge_buy_order", order)
            self._count_hedge(order, "limit")
            self._log_event("limit_hedge_placed", side="buy", px=price, oid=order.id)
        elif state.hedge_sell_order is None and state.hedge_buy_order is not None:
            price = self.pricer.limit_hedge_sell_price(bid_px, ask_px, state.hedge_buy_order.fill_price)
            order = await self.exchange.place_limit_order(self.hedge, price, self.contracts, Side.SELL)
            state.occupy("hedge_sell_order", order)
            self._count_hedge(order, "limit")
            self._log_event("limit_hedge_placed", side="sell", px=price, oid=order.id)
        elif state.hedge_buy_order is not None and state.hedge_sell_order is not None:
            await self._check_limit_hedge(bid_px, ask_px)

    async def _check_limit_hedge(self, bid_px: float, ask_px: float) -> None:
        state = self.state
        if state.hedge_buy_filled:
            limit = await self.market.get_order_by_id(self.hedge, state.hedge_sell_order.id)
            if not self._limit_hedge_filled(limit, "hedge_sell_order"):
                return
            pnl = self.pricer.profit_with_market_buy(
                bid_px, ask_px, state.hedge_buy_order.fill_price, limit.fill_price
            )
        elif state.hedge_sell_filled:
            limit = await self.market.get_order_by_id(self.hedge, state.hedge_buy_order.id)
            if not self._limit_hedge_filled(limit, "hedge_buy_order"):
                return
            pnl = self.pricer.profit_with_market_sell(
                bid_px, ask_px, limit.fill_price, state.hedge_sell_order.fill_price
            )
        else:
            return

        state.realize(pnl)
        self._log_event(
            "round_complete",
            phase=Phase.ROUND_COMPLETE.name,
            round_profit=pnl,
            total_profit=state.profit,
            rounds=state.rounds_completed,
        )
        if self.metrics:
            self.metrics.rounds_completed.labels(instrument=self.make).inc()
            self.metrics.round_profit.labels(instrument=self.make).observe(pnl)

    def _limit_hedge_filled(self, limit: Order, slot: str) -> bool:
        if limit.status in DEAD_STATUSES:
            # Freed so the hedge step posts it again next cycle.
            self.state.release(slot)
            self._order_lost("hedge_order_lost", limit, side=limit.side.value)
        return limit.is_filled

    # ========== Features ==========

    def _record_features(self, book: BookSnapshot) -> None:
        if self.history is None:
            return
        self.history.push(book)
        if not self.history.is_full:
            return
        try:
            features = self.history.features()
            self.feature_sink(self.make, features)
        except Exception as exc:
            # The scoring side is advisory; it must not block trading.
            log_event(log, "feature_sink_error", logging.WARNING, make=self.make, err=str(exc))

    # ========== Monitoring ==========

    def _order_placed(self, order: Order, role: str, **extra: Any) -> None:
        self._log_event("order_placed", role=role, side=order.side.value, px=order.price, sz=order.quantity, oid=order.id, **extra)
        if self.metrics:
            self.metrics.orders_placed.labels(instrument=order.instrument, side=order.side.value).inc()

    def _order_lost(self, event: str, order: Order, **extra: Any) -> None:
        self._log_event(event, oid=order.id, instrument=order.instrument, status=order.status.value, **extra)
        if self.metrics:
            self.metrics.orders_cancelled.labels(instrument=order.instrument, reason="venue").inc()

    def _count_hedge(self, order: Order, kind: str) -> None:
        if self.metrics:
            self.metrics.hedges_placed.labels(instrument=order.instrument, kind=kind).inc()

    def _count_error(self, kind: str) -> None:
        if self.metrics:
            self.metrics.cycle_errors.labels(instrument=self.make, kind=kind).inc()

    def _publish_gauges(self) -> None:
        if self.metrics:
            self.metrics.position.labels(instrument=self.make).set(self.state.position)
            self.metrics.total_profit.labels(instrument=self.make).set(self.state.profit)

    def effective_leverage(self) -> Optional[float]:
        """Leverage of the open maker leg marked to the current touch."""
        state = self.state
        book = self._last_book
        if book is None or state.position == 0:
            return None
        if state.position > 0 and state.bid_order is not None:
            return leverage_for_price(state.bid_order.price, book.best_bid.price, self.leverage)
        if state.position < 0 and state.ask_order is not None:
            return leverage_for_price(state.ask_order.price, book.best_ask.price, self.leverage)
        return None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "make": self.make,
            "hedge": self.hedge,
            "contracts": self.contracts,
            "effective_leverage": self.effective_leverage(),
            **self.state.to_dict(),
        }
