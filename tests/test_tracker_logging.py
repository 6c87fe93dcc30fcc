"""
Tests for tracker logging: JSON line shape and per-cycle context binding.
"""

from __future__ import annotations

import io
import json
import sys

from structlog.contextvars import get_contextvars

from payment_tracker.tracker_logging import configure_logging, get_logger, tracking_context
from payment_tracker.tracker_logging.logger import _event_type


def test_event_type_rename():
    assert _event_type(None, "info", {"event": "block_processed"}) == {"event_type": "block_processed"}
    # an explicit event_type wins
    assert _event_type(None, "info", {"event": "x", "event_type": "y"}) == {"event": "x", "event_type": "y"}


def test_tracking_context_binds_and_restores():
    with tracking_context(runner="transaction-tracker", tick=3, range=None):
        assert get_contextvars() == {"runner": "transaction-tracker", "tick": 3}
        with tracking_context(range="[4 - 5, 2]"):
            assert get_contextvars()["range"] == "[4 - 5, 2]"
        assert "range" not in get_contextvars()
    assert get_contextvars() == {}


def test_json_line_carries_bound_context(monkeypatch):
    buffer = io.StringIO()
    original = sys.stdout
    monkeypatch.setattr(sys, "stdout", buffer)
    configure_logging(level="INFO", fmt="json")
    try:
        log = get_logger("tests.tracker_logging")
        with tracking_context(range="[1 - 5, 5]"):
            log.info("block_processed", height=3, investments=1)
        log.debug("tracking_no_new_data")
    finally:
        monkeypatch.setattr(sys, "stdout", original)
        configure_logging()

    lines = [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]
    assert len(lines) == 1
    line = lines[0]
    assert line["event_type"] == "block_processed"
    assert line["range"] == "[1 - 5, 5]"
    assert line["height"] == 3
    assert line["level"] == "info"
    assert line["logger"] == "tests.tracker_logging"
    assert "timestamp" in line
    assert "event" not in line
