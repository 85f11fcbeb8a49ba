"""
CircuitBreaker: per-instance error streak tracking for the runner.

An instance whose cycles keep raising unexpected errors is parked for a
cooldown instead of hammering the venue every loop. The cooldown grows
geometrically on repeated trips and resets automatically once it expires.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from hedgebot.infra.logging_cfg import log_event

log = logging.getLogger("hedgebot")


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker behavior."""
    error_threshold: int = 5  # consecutive failed cycles before tripping
    cooldown_sec: float = 30.0
    backoff_multiplier: float = 2.0
    max_backoff: float = 32.0


class CircuitBreaker:
    """
    Trips after `error_threshold` consecutive errors and stays open for the
    cooldown. While open, `is_tripped` is True and the runner skips the
    instance. A success clears the streak.

    Not thread-safe; owned by a single asyncio task.
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        name: str = "",
        on_trip: Optional[Callable[[], None]] = None,
        log_event: Optional[Callable[..., None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CircuitBreakerConfig()
        self.name = name
        self.error_streak = 0
        self._tripped = False
        self._cooldown_until = 0.0
        self._trip_count = 0
        self._on_trip = on_trip
        self._clock = clock
        self._log_event = log_event or self._default_log

    def _default_log(self, event: str, **kwargs: Any) -> None:
        log_event(log, event, instance=self.name, **kwargs)

    @property
    def is_tripped(self) -> bool:
        if self._tripped and self._clock() >= self._cooldown_until:
            self._reset()
        return self._tripped

    @property
    def trip_count(self) -> int:
        return self._trip_count

    @property
    def cooldown_remaining(self) -> float:
        if not self._tripped:
            return 0.0
        return max(0.0, self._cooldown_until - self._clock())

    def record_error(self, where: str, error: BaseException) -> bool:
        """Count a failed cycle. Returns True if this error tripped the breaker."""
        self.error_streak += 1
        self._log_event("cycle_error", where=where, err=str(error), streak=self.error_streak)
        if self.error_streak >= self.config.error_threshold:
            return self._trip(where)
        return False

    def record_success(self) -> None:
        if self.error_streak > 0:
            self._log_event("cycle_error_reset", streak=self.error_streak)
            self.error_streak = 0

    def _trip(self, where: str) -> bool:
        if self._tripped:
            return False
        self._tripped = True
        self._trip_count += 1
        backoff = min(self.config.backoff_multiplier ** (self._trip_count - 1), self.config.max_backoff)
        cooldown = self.config.cooldown_sec * backoff
        self._cooldown_until = self._clock() + cooldown
        self._log_event(
            "circuit_break",
            where=where,
            streak=self.error_streak,
            trip_count=self._trip_count,
            cooldown_sec=cooldown,
        )
        if self._on_trip:
            try:
                self._on_trip()
            except Exception:
                log_event(log, "circuit_on_trip_failed", logging.ERROR, exc_info=True, instance=self.name)
        return True

    def _reset(self) -> None:
        self._tripped = False
        self.error_streak = 0
        self._log_event("circuit_reset", trip_count=self._trip_count)

    def force_reset(self) -> None:
        self._cooldown_until = 0.0
        if self._tripped:
            self._reset()

    def get_state(self) -> Dict[str, Any]:
        return {
            "tripped": self._tripped,
            "error_streak": self.error_streak,
            "trip_count": self._trip_count,
            "cooldown_remaining": self.cooldown_remaining,
        }
