"""
Hedge pricing and realized-profit arithmetic for inverse contracts.

All terms are reciprocal prices scaled by the contract count, so values
nearly cancel. Everything stays in double precision; switching to Decimal
would change the golden values the tests pin.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_UP, Decimal

from hedgebot.core.rounding import get_round_price, round_half_up


@dataclass(frozen=True)
class PricingConfig:
    """Taker fee, maker rebate (fractions of notional) and minimum tick."""
    fee: float = 0.00075
    rebate: float = 0.00025
    tick: float = 0.5

    def __post_init__(self) -> None:
        if self.fee < 0 or self.rebate < 0:
            raise ValueError("fee and rebate must be >= 0")
        if self.tick <= 0:
            raise ValueError("tick must be > 0")


class HedgePricer:
    """Pricing formulas bound to one contract size and fee schedule."""

    def __init__(self, contracts: int, config: PricingConfig | None = None) -> None:
        if contracts <= 0:
            raise ValueError("contracts must be > 0")
        self.contracts = contracts
        self.config = config or PricingConfig()

    def limit_hedge_buy_price(self, bid: float, ask: float, sell: float) -> float:
        """
        Limit price for the buy hedge once the sell hedge went out at market.

        Solves for the buy price that breaks even after paying the taker fee on
        the market sell leg.
        """
        c = self.contracts
        fee = self.config.fee
        return -round_half_up(c / (c * (1 / bid - 1 / ask) - c / sell * (1 + fee)))

    def limit_hedge_sell_price(self, bid: float, ask: float, buy: float) -> float:
        """Limit price for the sell hedge once the buy hedge went out at market."""
        c = self.contracts
        fee = self.config.fee
        return round_half_up(c / (c * (1 / bid - 1 / ask) + c / buy * (1 - fee)))

    def profit_with_market_buy(self, bid: float, ask: float, buy: float, sell: float) -> float:
        """Round profit when the buy hedge was the market order and the sell hedge the limit."""
        c = self.contracts
        fee = self.config.fee
        rebate = self.config.rebate
        return (
            c * (1 / bid - 1 - ask + 1 / buy - 1 / sell)
            - c / buy * fee
            + c * rebate * (1 / bid + 1 / ask + 1 / sell)
        )

    def profit_with_market_sell(self, bid: float, ask: float, buy: float, sell: float) -> float:
        """Round profit when the sell hedge was the market order and the buy hedge the limit."""
        c = self.contracts
        fee = self.config.fee
        rebate = self.config.rebate
        return (
            c * (1 / bid - 1 - ask + 1 / buy - 1 / sell)
            - c / sell * fee
            + c * rebate * (1 / bid + 1 / ask + 1 / buy)
        )

    def round_price(self, price: float, spread: float = 1.0) -> float:
        return get_round_price(price, spread, self.config.tick)


def leverage_for_price(trade_price: float, new_price: float, leverage: float) -> float:
    """
    Rescale leverage taken at trade_price to new_price, two decimals.

    Rounds up when the trade price is above the new price, down otherwise.
    """
    if new_price <= 0:
        raise ValueError("new_price must be > 0")
    mode = ROUND_UP if trade_price > new_price else ROUND_DOWN
    value = Decimal(trade_price * leverage) / Decimal(new_price)
    return float(value.quantize(Decimal("0.01"), rounding=mode))
