# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger
from observability.metrics import timed


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    lines: list[dict[str, Any]] = []
    monkeypatch.setattr(logger, "_print", lambda line: lines.append(json.loads(line)))
    monkeypatch.setattr(logger, "_min_level", logger.LEVELS["info"])
    return lines


def test_log_event_emits_one_line_with_defaults(captured):
    logger.log_event({"event_type": "TEST", "value": 123})

    assert len(captured) == 1
    line = captured[0]
    assert line["event_type"] == "TEST"
    assert line["value"] == 123
    assert line["level"] == "info"
    assert isinstance(line["ts_ms"], int)


def test_caller_fields_win_over_defaults(captured):
    logger.log_event({"event_type": "TEST", "level": "error", "ts_ms": 7})

    assert captured[0]["level"] == "error"
    assert captured[0]["ts_ms"] == 7


def test_events_below_min_level_are_dropped(captured):
    logger.set_level("WARNING")

    logger.log_event({"event_type": "QUIET", "level": "debug"})
    logger.log_event({"event_type": "QUIET"})
    logger.log_event({"event_type": "LOUD", "level": "error"})

    assert [line["event_type"] for line in captured] == ["LOUD"]


def test_unserializable_payload_falls_back(captured):
    logger.log_event({"event_type": "BAD", "payload": object()})

    assert captured[0]["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert captured[0]["level"] == "error"


def test_timed_reports_error_outcome(captured):
    logger.set_level("debug")

    with pytest.raises(RuntimeError):
        with timed("probe"):
            raise RuntimeError("boom")

    metric = captured[-1]
    assert metric["event_type"] == "METRIC_TIMER"
    assert metric["outcome"] == "error"
