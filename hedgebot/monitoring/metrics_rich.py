"""
Prometheus metrics for the maker/hedge bot.

Organized into: orders, rounds, positions, operational.
"""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry
from typing import Optional


class RichMetrics:
    """Metrics shared by every strategy instance, labelled by maker instrument."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        reg = registry or CollectorRegistry()

        # === Order Metrics ===
        self.orders_placed = Counter(
            'orders_placed_total',
            'Orders placed on the exchange',
            labelnames=['instrument', 'side'],
            registry=reg
        )
        self.orders_cancelled = Counter(
            'orders_cancelled_total',
            'Orders cancelled',
            labelnames=['instrument', 'reason'],
            registry=reg
        )
        self.hedges_placed = Counter(
            'hedges_placed_total',
            'Hedge orders placed (market or limit)',
            labelnames=['instrument', 'kind'],
            registry=reg
        )

        # === Round Metrics ===
        self.rounds_completed = Counter(
            'rounds_completed_total',
            'Maker/hedge rounds closed',
            labelnames=['instrument'],
            registry=reg
        )
        self.round_profit = Histogram(
            'round_profit',
            'Realized profit per round (coin units)',
            labelnames=['instrument'],
            buckets=[-0.001, -0.0001, -0.00001, 0, 0.00001, 0.0001, 0.001],
            registry=reg
        )

        # === Position Metrics ===
        self.position = Gauge(
            'position_contracts',
            'Net maker position (contracts)',
            labelnames=['instrument'],
            registry=reg
        )
        self.total_profit = Gauge(
            'total_profit',
            'Cumulative realized profit',
            labelnames=['instrument'],
            registry=reg
        )

        # === Operational Metrics ===
        self.cycle_errors = Counter(
            'cycle_errors_total',
            'Poll cycles abandoned by error kind',
            labelnames=['instrument', 'kind'],
            registry=reg
        )
        self.cycles = Counter(
            'cycles_total',
            'Poll cycles executed',
            labelnames=['instrument'],
            registry=reg
        )
        self.circuit_open = Gauge(
            'circuit_open',
            'Circuit breaker state (1=open, 0=closed)',
            labelnames=['instrument'],
            registry=reg
        )

        self.registry = reg

    def get_registry(self):
        """Return the Prometheus registry for export."""
        return self.registry
