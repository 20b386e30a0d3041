"""
Logging Tests
-------------
Tests cover:
- turn_id scoping through TurnContext
- TurnIdFilter and the JSON file formatter
- get_logger namespacing
"""

from pathlib import Path
import json
import logging
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from infra.logging import (
    JSONFormatter,
    TurnConsoleFormatter,
    TurnContext,
    TurnIdFilter,
    generate_turn_id,
    get_logger,
    get_turn_id,
)


def make_record(msg="hello", **extra):
    record = logging.LogRecord("jarvis.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestTurnContext:

    def test_scoped(self):
        assert get_turn_id() is None
        with TurnContext() as turn_id:
            assert turn_id.startswith("turn_")
            assert get_turn_id() == turn_id
        assert get_turn_id() is None

    def test_nested_restores_outer(self):
        with TurnContext("outer"):
            with TurnContext("inner"):
                assert get_turn_id() == "inner"
            assert get_turn_id() == "outer"

    def test_ids_unique(self):
        assert len({generate_turn_id() for _ in range(100)}) == 100


class TestFormatters:

    def test_filter_adds_turn_id(self):
        record = make_record()
        with TurnContext("turn_abc"):
            TurnIdFilter().filter(record)
        assert record.turn_id == "turn_abc"

    def test_filter_default(self):
        record = make_record()
        TurnIdFilter().filter(record)
        assert record.turn_id == "-"

    def test_json_formatter(self):
        record = make_record("TURN_END", turn_id="turn_1", intent="ReadNotes", success=True)

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "TURN_END"
        assert entry["turn_id"] == "turn_1"
        assert entry["intent"] == "ReadNotes"
        assert entry["success"] is True
        assert "error_kind" not in entry

    def test_console_formatter_prefix(self):
        formatter = TurnConsoleFormatter("%(message)s")

        assert formatter.format(make_record(turn_id="turn_9")) == "[turn_9] hello"
        assert formatter.format(make_record(turn_id="-")) == "hello"


def test_get_logger_namespace():
    assert get_logger("engine").name == "jarvis.engine"
    assert get_logger("jarvis.notes").name == "jarvis.notes"
