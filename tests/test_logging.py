"""Unit tests for per-character JSON logs and record helpers."""

import json
import logging

import pytest
from artifactsfleet import (
    DecisionLogger,
    Envelope,
    JsonLinesFormatter,
    RecordType,
    Topics,
    create_record,
    parse_record,
)
from pydantic import BaseModel, ValidationError


@pytest.fixture
def decision_log(tmp_path):
    log = DecisionLogger("tester", str(tmp_path / "logs"))
    yield log
    log.close()


def _lines(log: DecisionLogger) -> list[dict]:
    with open(log.path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


# --- DecisionLogger ---


class TestDecisionLogger:
    def test_creates_directory_and_file(self, decision_log: DecisionLogger):
        decision_log.info("hello")
        assert decision_log.path.endswith("tester.log")
        assert _lines(decision_log)[0]["message"] == "hello"

    def test_line_fields(self, decision_log: DecisionLogger):
        decision_log.warning("Stuck detected", data={"failures": 3})
        entry = _lines(decision_log)[0]
        assert entry["character"] == "tester"
        assert entry["level"] == "warning"
        assert entry["data"] == {"failures": 3}
        assert "timestamp" in entry

    def test_decision_record(self, decision_log: DecisionLogger):
        decision_log.decision(
            {"type": "gather", "resource": "ash_tree"},
            "strategy decision",
            {"characters": {}},
            {"hp": 100},
        )
        entry = _lines(decision_log)[0]
        assert entry["level"] == "decision"
        assert entry["message"] == "gather (strategy decision)"
        assert entry["decision"] == {"type": "gather", "resource": "ash_tree"}
        assert entry["reason"] == "strategy decision"
        assert entry["board"] == {"characters": {}}
        assert entry["state"] == {"hp": 100}

    def test_exception_captured(self, decision_log: DecisionLogger):
        try:
            raise ValueError("bad tick")
        except ValueError:
            decision_log.exception("Unhandled error")
        entry = _lines(decision_log)[0]
        assert entry["level"] == "error"
        assert "ValueError: bad tick" in entry["error"]

    def test_one_handler_per_file(self, tmp_path):
        first = DecisionLogger("dup", str(tmp_path))
        second = DecisionLogger("dup", str(tmp_path))
        second.info("once")
        assert len(_lines(first)) == 1
        first.close()
        assert not any(isinstance(h, logging.FileHandler) for h in second.logger.handlers)


class TestJsonLinesFormatter:
    def test_plain_record(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "value %d", (5,), None)
        entry = json.loads(JsonLinesFormatter().format(record))
        assert entry["message"] == "value 5"
        assert entry["character"] == ""
        assert "data" not in entry


# --- Records ---


class _Payload(BaseModel):
    goal: str
    reason: str


class TestCreateRecord:
    def test_with_pydantic_model(self):
        env = create_record(
            from_agent="alice",
            topic=Topics.decisions("alice"),
            record_type=RecordType.DECISION,
            payload=_Payload(goal="rest", reason="survival"),
        )
        assert env.from_agent == "alice"
        assert env.topic == "/fleet/decisions/alice"
        assert env.type == RecordType.DECISION
        assert env.payload == {"goal": "rest", "reason": "survival"}

    def test_with_dict_payload(self):
        env = create_record(
            from_agent="bob",
            topic=Topics.decisions("bob"),
            record_type=RecordType.DECISION,
            payload={"goal": {"type": "idle"}},
        )
        assert env.payload["goal"]["type"] == "idle"


class TestParseRecord:
    def _json(self) -> str:
        env = create_record(
            from_agent="alice",
            topic=Topics.decisions("alice"),
            record_type=RecordType.DECISION,
            payload={"goal": {"type": "rest"}},
        )
        return env.model_dump_json(by_alias=True)

    def test_from_str(self):
        assert parse_record(self._json()).from_agent == "alice"

    def test_from_bytes(self):
        assert parse_record(self._json().encode()).payload == {"goal": {"type": "rest"}}

    def test_from_dict(self):
        assert isinstance(parse_record(json.loads(self._json())), Envelope)

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_record("{nope")

    def test_invalid_schema(self):
        with pytest.raises(ValidationError):
            parse_record({"topic": "/fleet/decisions/alice"})
