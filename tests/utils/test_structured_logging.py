import json
import logging

from pos_terminal.utils.structured_logging import ColoredFormatter, JSONFormatter, get_logger


def _record(**extra):
    record = logging.LogRecord("pos_terminal.test", logging.INFO, __file__, 10, "Connected", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_context():
    payload = json.loads(JSONFormatter().format(_record(terminal="staff", handle=3, request_id="r1", duration_ms=4.2)))

    assert payload["msg"] == "Connected"
    assert payload["terminal"] == "staff"
    assert payload["handle"] == 3
    assert payload["request_id"] == "r1"
    assert payload["duration_ms"] == 4.2


def test_colored_formatter_tags_terminal_and_handle():
    line = ColoredFormatter().format(_record(terminal="customer", handle=2))
    assert "[customer #2] Connected" in line


def test_bound_logger_adds_context(caplog):
    log = get_logger("pos_terminal.test").bind(terminal="staff")
    with caplog.at_level(logging.INFO, logger="pos_terminal.test"):
        log.info("Scanner up", extra={"handle": 7})

    record = caplog.records[-1]
    assert record.terminal == "staff"
    assert record.handle == 7
