"""
Structured logging setup for the hedge bot.

Every component logs one JSON object per line with an "event" key (see
log_event). The console gets those lines through rich, the log file gets
them wrapped in a JSON envelope and written from a background thread so a
slow disk never stalls a poll cycle.
"""

from __future__ import annotations

import atexit
import json
import logging
import logging.handlers
import queue
import sys
import time
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional

from rich.logging import RichHandler

# Events that repeat every cycle for as long as their cause lasts.
REPEATING_EVENTS = frozenset({"order_query_transient", "instance_skipped_circuit_open"})


class JsonFormatter(logging.Formatter):
    """Envelope for file and non-tty output: timestamp, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        envelope: Dict[str, Any] = {
            "ts": round(record.created, 3),
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            envelope["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(envelope, separators=(",", ":"))


class DroppingQueueHandler(logging.handlers.QueueHandler):
    """
    Bounded QueueHandler whose listener thread feeds the wrapped handler.

    When the writer falls behind the queue fills up and new records are
    counted in `dropped` instead of blocking the caller.
    """

    def __init__(self, target: logging.Handler, max_queue_size: int = 10000):
        super().__init__(queue.Queue(maxsize=max_queue_size))
        self.target = target
        self.dropped = 0
        self._listener = logging.handlers.QueueListener(self.queue, target, respect_handler_level=True)
        self._listener.start()
        self._closed = False
        atexit.register(self.close)

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            self.dropped += 1

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._listener.stop()
        if self.dropped:
            sys.stderr.write(f"[logging] {self.dropped} records dropped, log writer fell behind\n")
        self.target.close()
        super().close()


class ThrottledFilter(logging.Filter):
    """
    Let a repeating event through once per instance per cooldown window.

    The instance is the `make` field of strategy events or the `instance`
    field of runner events. Other events and non-JSON lines always pass.
    """

    def __init__(
        self,
        cooldown_sec: float = 30.0,
        throttled_events: Optional[Iterable[str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.cooldown_sec = cooldown_sec
        self.events: FrozenSet[str] = frozenset(throttled_events or REPEATING_EVENTS)
        self._clock = clock
        self._passed_at: Dict[tuple, float] = {}

    def _key(self, record: logging.LogRecord) -> Optional[tuple]:
        try:
            data = json.loads(record.getMessage())
        except (ValueError, TypeError):
            return None
        if not isinstance(data, dict) or data.get("event") not in self.events:
            return None
        return data["event"], data.get("make") or data.get("instance") or ""

    def filter(self, record: logging.LogRecord) -> bool:
        key = self._key(record)
        if key is None:
            return True
        now = self._clock()
        passed_at = self._passed_at.get(key)
        if passed_at is not None and now - passed_at < self.cooldown_sec:
            return False
        self._passed_at[key] = now
        return True


def _console_handler(use_rich: bool) -> logging.Handler:
    if not use_rich:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        return handler
    handler = RichHandler(show_path=False, markup=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(file_path: str, queued: bool) -> logging.Handler:
    handler = logging.FileHandler(file_path, encoding="utf-8")
    handler.setFormatter(JsonFormatter())
    return DroppingQueueHandler(handler) if queued else handler


def build_logger(
    name: str = "hedgebot",
    level: int | str = logging.INFO,
    file_path: Optional[str] = "hedgebot.log",
    async_file: bool = True,
    throttle_warnings: bool = True,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Configure and return the process logger.

    Calling it again only updates the level, so tests and entry points can
    both call it without stacking handlers. Repeating events are throttled
    on the console only; the file keeps every line.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console = _console_handler(use_rich)
    if throttle_warnings:
        console.addFilter(ThrottledFilter())
    handlers = [console]
    if file_path:
        handlers.append(_file_handler(file_path, async_file))

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    """
    Emit one JSON event line, the message shape every hedgebot component uses.

        log_event(log, "round_complete", make="BTC", round_profit=0.0001)

    Values that JSON cannot encode are written with str().
    """
    logger.log(level, json.dumps({"event": event, **fields}, default=str), exc_info=exc_info)
