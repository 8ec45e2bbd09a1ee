"""Focused tests for crux_meter.base.logging.

Covers:
- _parse_level string parsing
- logger naming under the shared ``meter`` hierarchy
- log_event / normalized_log_event payloads
- JsonFormatter flattening and the managed file handler
"""
from __future__ import annotations

import json
import logging

from crux_meter.base.log_support import JsonFormatter, LogContext
from crux_meter.base.logging import (
    _parse_level,  # type: ignore[attr-defined]
    configure_logger,
    get_logger,
    log_event,
    normalized_log_event,
)
from crux_meter.base.models_parts.token_metrics import TokenMetrics


class _ListHandler(logging.Handler):
    """Capture log records into a list for assertions."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - exercised via tests
        self.messages.append(record.getMessage())


def _attached(name: str):
    logger = get_logger(name)
    handler = _ListHandler()
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger, handler


def test_parse_level_variants():
    assert _parse_level(None) == logging.INFO  # nosec B101
    assert _parse_level("debug") == logging.DEBUG  # nosec B101
    assert _parse_level("WARN") == logging.WARNING  # nosec B101
    assert _parse_level("unknown", default=logging.ERROR) == logging.ERROR  # nosec B101


def test_get_logger_prefixes_foreign_names():
    assert get_logger("processing").name == "meter.processing"  # nosec B101
    assert get_logger("meter.stream").name == "meter.stream"  # nosec B101
    assert get_logger().name == "meter"  # nosec B101
    assert get_logger().propagate is False  # nosec B101


def test_log_event_drops_none_unless_kept():
    logger, handler = _attached("meter.test.events")
    ctx = LogContext(provider="openai", model="gpt-4o", request_id="r1", extra={"tier": "flex", "skip": None})
    log_event(logger, "meter.request.recorded", ctx, cost=0.5, response_id=None)
    payload = json.loads(handler.messages[-1])
    assert payload == {  # nosec B101
        "event": "meter.request.recorded",
        "provider": "openai",
        "model": "gpt-4o",
        "request_id": "r1",
        "tier": "flex",
        "cost": 0.5,
    }

    log_event(logger, "meter.request.recorded", keep_none=True, response_id=None)
    assert json.loads(handler.messages[-1])["response_id"] is None  # nosec B101


def test_normalized_log_event_canonical_keys():
    logger, handler = _attached("meter.test.normalized")
    normalized_log_event(
        logger,
        "meter.stream.finished",
        LogContext(provider="anthropic"),
        phase="finalize",
        error_code="timeout",
        tokens=TokenMetrics(prompt_tokens=3, completion_tokens=1),
        chunks=4,
        skipped=None,
    )
    payload = json.loads(handler.messages[-1])
    assert payload["structured"] is True  # nosec B101
    assert payload["phase"] == "finalize"  # nosec B101
    assert payload["error_code"] == "timeout"  # nosec B101
    assert payload["tokens"]["prompt_tokens"] == 3  # nosec B101
    assert payload["chunks"] == 4  # nosec B101
    assert "skipped" not in payload  # nosec B101

    normalized_log_event(logger, "meter.stream.finished", phase="finalize")
    payload = json.loads(handler.messages[-1])
    assert payload["tokens"] is None  # nosec B101
    assert "error_code" not in payload  # nosec B101


def test_json_formatter_hoists_event_payload():
    record = logging.LogRecord(
        "meter.test", logging.INFO, __file__, 1, json.dumps({"event": "meter.sink.record", "cost": 1.5}), None, None
    )
    out = json.loads(JsonFormatter().format(record))
    assert out["event"] == "meter.sink.record"  # nosec B101
    assert out["cost"] == 1.5  # nosec B101
    assert out["level"] == "INFO"  # nosec B101
    assert "msg" not in out  # nosec B101

    plain = logging.LogRecord("meter.test", logging.WARNING, __file__, 1, "plain %s", ("text",), None)
    assert json.loads(JsonFormatter().format(plain))["msg"] == "plain text"  # nosec B101


def test_configure_logger_attaches_and_removes_file_handler(tmp_path):
    target = tmp_path / "logs" / "meter.log"
    logger = configure_logger(level="DEBUG", file_path=str(target))
    try:
        assert any(getattr(h, "baseFilename", None) == str(target) for h in logger.handlers)  # nosec B101
        assert logger.level == logging.DEBUG  # nosec B101
        log_event(get_logger("meter.test.file"), "meter.test.file_written", value=1)
        for h in logger.handlers:
            h.flush()
        assert "meter.test.file_written" in target.read_text(encoding="utf-8")  # nosec B101
    finally:
        logger = configure_logger(level="INFO", file_path=None)
    assert not any(getattr(h, "_meter_file_handler", False) for h in logger.handlers)  # nosec B101
    assert not any(getattr(h, "baseFilename", None) == str(target) for h in logger.handlers)  # nosec B101
