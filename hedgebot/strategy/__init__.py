"""
Strategy package - maker/hedge state machine and pricing.
"""

from hedgebot.strategy.maker_hedge import MakerHedgeStrategy
from hedgebot.strategy.maker_hedge_state import MakerHedgeState, Phase, SlotOccupiedError
from hedgebot.strategy.pricing import HedgePricer, PricingConfig, leverage_for_price
from hedgebot.strategy.strategy_factory import StrategyFactory

__all__ = [
    "HedgePricer",
    "MakerHedgeState",
    "MakerHedgeStrategy",
    "Phase",
    "PricingConfig",
    "SlotOccupiedError",
    "StrategyFactory",
    "leverage_for_price",
]
