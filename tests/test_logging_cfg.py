"""Tests for structured logging helpers."""

import json
import logging

from hedgebot.infra.logging_cfg import DroppingQueueHandler, JsonFormatter, ThrottledFilter, build_logger, log_event


def _record(msg, level=logging.INFO):
    return logging.LogRecord("hedgebot", level, __file__, 1, msg, None, None)


def test_json_formatter_wraps_message():
    out = json.loads(JsonFormatter().format(_record('{"event": "x"}')))
    assert out["level"] == "INFO"
    assert out["name"] == "hedgebot"
    assert json.loads(out["msg"]) == {"event": "x"}


def test_throttled_filter_suppresses_repeats_per_instrument():
    flt = ThrottledFilter(cooldown_sec=60.0)
    msg_btc = json.dumps({"event": "order_query_transient", "make": "BTC"})
    msg_sol = json.dumps({"event": "order_query_transient", "make": "SOL"})
    assert flt.filter(_record(msg_btc))
    assert not flt.filter(_record(msg_btc))
    assert flt.filter(_record(msg_sol))


def test_throttled_filter_passes_other_events_and_plain_text():
    flt = ThrottledFilter(cooldown_sec=60.0)
    msg = json.dumps({"event": "round_complete", "make": "BTC"})
    assert flt.filter(_record(msg))
    assert flt.filter(_record(msg))
    assert flt.filter(_record("plain text"))


def test_log_event_emits_json(caplog):
    logger = logging.getLogger("hedgebot.test_log_event")
    with caplog.at_level(logging.INFO, logger="hedgebot.test_log_event"):
        log_event(logger, "round_complete", make="BTC", round_profit=0.5)
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload == {"event": "round_complete", "make": "BTC", "round_profit": 0.5}


def test_build_logger_writes_json_file(tmp_path):
    path = tmp_path / "bot.log"
    logger = build_logger("hedgebot.test_file", file_path=str(path), async_file=False, use_rich=False)
    logger.info(json.dumps({"event": "startup"}))
    for handler in logger.handlers:
        handler.flush()

    line = path.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(json.loads(line)["msg"]) == {"event": "startup"}
    assert logger.propagate is False


def test_build_logger_is_idempotent(tmp_path):
    name = "hedgebot.test_idempotent"
    first = build_logger(name, file_path=None, use_rich=False)
    count = len(first.handlers)
    second = build_logger(name, level=logging.DEBUG, file_path=None, use_rich=False)
    assert second is first
    assert len(second.handlers) == count
    assert second.level == logging.DEBUG


def test_throttled_filter_reopens_after_cooldown():
    now = [100.0]
    flt = ThrottledFilter(cooldown_sec=30.0, clock=lambda: now[0])
    msg = json.dumps({"event": "instance_skipped_circuit_open", "instance": "BTC/ETH"})
    assert flt.filter(_record(msg))
    now[0] = 129.0
    assert not flt.filter(_record(msg))
    now[0] = 130.0
    assert flt.filter(_record(msg))


def test_log_event_stringifies_unknown_values(caplog):
    logger = logging.getLogger("hedgebot.test_log_event_str")
    with caplog.at_level(logging.WARNING, logger="hedgebot.test_log_event_str"):
        log_event(logger, "exchange_error", logging.WARNING, err=ValueError("boom"))
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert json.loads(record.getMessage()) == {"event": "exchange_error", "err": "boom"}


def test_queued_file_handler_writes_through_listener(tmp_path):
    path = tmp_path / "queued.log"
    target = logging.FileHandler(str(path), encoding="utf-8")
    target.setFormatter(JsonFormatter())
    handler = DroppingQueueHandler(target)
    logger = logging.getLogger("hedgebot.test_queued")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    try:
        log_event(logger, "startup", instances=["BTC/ETH"])
    finally:
        logger.removeHandler(handler)
        handler.close()

    line = path.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(json.loads(line)["msg"]) == {"event": "startup", "instances": ["BTC/ETH"]}
    assert handler.dropped == 0
