"""
Risk package.

This package contains the per-instance circuit breaker.
"""

from hedgebot.risk.circuit_breaker import CircuitBreaker, CircuitBreakerConfig

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
]
