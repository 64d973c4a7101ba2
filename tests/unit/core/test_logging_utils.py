import json
import logging
import sys

from infrastructure.core.logging_utils import StructuredFormatter, get_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="infrastructure.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Resolved %s",
        args=("dev",),
        exc_info=None,
        func="resolve",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_extras() -> None:
    payload = json.loads(StructuredFormatter().format(_record(environment="dev", is_prod=False)))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "infrastructure.test"
    assert payload["message"] == "Resolved dev"
    assert payload["function"] == "resolve"
    assert payload["environment"] == "dev"
    assert payload["is_prod"] is False
    assert payload["timestamp"].endswith("Z")
    assert "args" not in payload


def test_formatter_includes_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(StructuredFormatter().format(record))

    assert "ValueError: boom" in payload["exception"]


def test_get_logger_attaches_single_handler() -> None:
    first = get_logger("tests.logging.single")
    second = get_logger("tests.logging.single")

    assert first is second
    assert len(first.handlers) == 1
    assert isinstance(first.handlers[0].formatter, StructuredFormatter)
    assert first.propagate is False


def test_get_logger_level_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert get_logger("tests.logging.env").level == logging.DEBUG
    assert get_logger("tests.logging.explicit", level="WARNING").level == logging.WARNING


def test_unknown_level_falls_back_to_info() -> None:
    assert get_logger("tests.logging.unknown", level="chatty").level == logging.INFO
