"""Tests for the per-instance circuit breaker."""

from hedgebot.risk.circuit_breaker import CircuitBreaker, CircuitBreakerConfig


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _breaker(clock, threshold=3, cooldown=10.0, on_trip=None):
    events = []
    cb = CircuitBreaker(
        CircuitBreakerConfig(error_threshold=threshold, cooldown_sec=cooldown),
        name="BTC/ETH",
        on_trip=on_trip,
        log_event=lambda event, **kw: events.append(event),
        clock=clock,
    )
    return cb, events


def test_trips_after_threshold():
    clock = FakeClock()
    cb, events = _breaker(clock)
    assert not cb.record_error("poll_once", RuntimeError("a"))
    assert not cb.record_error("poll_once", RuntimeError("b"))
    assert cb.record_error("poll_once", RuntimeError("c"))
    assert cb.is_tripped
    assert "circuit_break" in events
    assert cb.cooldown_remaining == 10.0


def test_success_resets_streak():
    clock = FakeClock()
    cb, _ = _breaker(clock)
    cb.record_error("poll_once", RuntimeError("a"))
    cb.record_error("poll_once", RuntimeError("b"))
    cb.record_success()
    assert cb.error_streak == 0
    assert not cb.record_error("poll_once", RuntimeError("c"))
    assert not cb.is_tripped


def test_resets_after_cooldown():
    clock = FakeClock()
    cb, events = _breaker(clock)
    for _ in range(3):
        cb.record_error("poll_once", RuntimeError("x"))
    clock.now += 9.0
    assert cb.is_tripped
    clock.now += 1.0
    assert not cb.is_tripped
    assert cb.error_streak == 0
    assert "circuit_reset" in events


def test_cooldown_backs_off_on_repeated_trips():
    clock = FakeClock()
    cb, _ = _breaker(clock, threshold=1)
    cb.record_error("poll_once", RuntimeError("x"))
    assert cb.cooldown_remaining == 10.0
    clock.now += 10.0
    assert not cb.is_tripped
    cb.record_error("poll_once", RuntimeError("x"))
    assert cb.cooldown_remaining == 20.0
    assert cb.trip_count == 2


def test_on_trip_failure_is_contained():
    def on_trip():
        raise RuntimeError("callback failed")

    clock = FakeClock()
    cb, _ = _breaker(clock, threshold=1, on_trip=on_trip)
    assert cb.record_error("poll_once", RuntimeError("x"))
    assert cb.is_tripped


def test_force_reset_and_state():
    clock = FakeClock()
    cb, _ = _breaker(clock, threshold=1)
    cb.record_error("poll_once", RuntimeError("x"))
    assert cb.get_state()["tripped"]
    cb.force_reset()
    assert not cb.is_tripped
    assert cb.get_state() == {"tripped": False, "error_streak": 0, "trip_count": 1, "cooldown_remaining": 0.0}
