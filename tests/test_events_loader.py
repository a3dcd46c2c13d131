"""Tests for the recorded event stream loader."""

import base64
import json

import pytest

from chorus.events import (
    CaseStarted,
    DataTable,
    DocString,
    Embed,
    EventDecodeError,
    HookStep,
    HookType,
    PickleStep,
    RunFinished,
    RunStarted,
    Status,
    StepFinished,
    Write,
    iter_events,
    load_events,
    parse_event,
)


class TestParseEvent:
    """Tests for parse_event."""

    def test_run_events(self):
        assert parse_event({"type": "run-started"}) == RunStarted()
        assert parse_event({"type": "run-finished"}) == RunFinished()

    def test_case_started(self):
        event = parse_event({
            "type": "case-started", "uri": "a.feature", "line": 3,
            "name": "Add", "tags": ["@smoke"],
        })
        assert event == CaseStarted(uri="a.feature", line=3, name="Add", tags=["@smoke"])
        assert event.key == (3, "a.feature")

    def test_pickle_step(self):
        event = parse_event({
            "type": "step-finished", "uri": "a.feature", "line": 3,
            "step": {
                "line": 4, "text": "I add 1", "keyword": "When ",
                "doc_string": {"content": "body", "media_type": "json"},
                "arguments": [1],
                "definition": {
                    "location": "steps.add(int)",
                    "attributes": ["k:v"],
                    "test_case_id": "TC-9",
                    "parametrized": True,
                },
            },
            "result": {"status": "failed", "error_message": "boom", "stack_trace": "trace"},
        })
        assert isinstance(event, StepFinished)
        step = event.step
        assert isinstance(step, PickleStep)
        assert step.argument == DocString("body", "json")
        assert step.definition_arguments == ["1"]
        assert step.definition.test_case_id == "TC-9"
        assert step.definition.parametrized is True
        assert event.result.status == Status.FAILED
        assert event.result.stack_trace == "trace"

    def test_data_table_step(self):
        event = parse_event({
            "type": "step-started", "uri": "a.feature", "line": 3,
            "step": {"line": 4, "text": "a table", "data_table": [["a", 1]]},
        })
        assert event.step.argument == DataTable([["a", "1"]])

    def test_hook_step(self):
        event = parse_event({
            "type": "step-started", "uri": "a.feature", "line": 3,
            "step": {"hook_type": "after_step", "code_location": "hooks.x()"},
        })
        assert event.step == HookStep(HookType.AFTER_STEP, "hooks.x()")

    def test_embed_decodes_base64(self):
        event = parse_event({
            "type": "embed",
            "data": base64.b64encode(b"\x00\x01").decode(),
            "media_type": "application/octet-stream",
        })
        assert event == Embed(data=b"\x00\x01", media_type="application/octet-stream")
        assert event.key is None

    def test_write_with_case_key(self):
        event = parse_event({"type": "write", "text": "hi", "uri": "a.feature", "line": 3})
        assert event == Write(text="hi", uri="a.feature", line=3)
        assert event.key == (3, "a.feature")

    @pytest.mark.parametrize("data, message", [
        ([], "must be an object"),
        ({"type": "explode"}, "Unknown event type"),
        ({"type": "source-read", "uri": "a.feature"}, "missing required field"),
        ({"type": "embed", "data": "***"}, "invalid base64"),
        ({"type": "case-finished", "uri": "a", "line": 1, "result": {"status": "weird"}}, "case-finished"),
    ])
    def test_invalid_events(self, data, message):
        with pytest.raises(EventDecodeError, match=message):
            parse_event(data)


class TestLoadEvents:
    """Tests for iter_events and load_events."""

    def test_skips_blank_lines(self):
        lines = ['{"type": "run-started"}', "", "   ", '{"type": "run-finished"}']
        assert list(iter_events(lines)) == [RunStarted(), RunFinished()]

    def test_invalid_json_names_line(self):
        with pytest.raises(EventDecodeError) as exc_info:
            list(iter_events(['{"type": "run-started"}', "{nope"]))
        assert exc_info.value.line_number == 2
        assert str(exc_info.value).startswith("line 2:")

    def test_invalid_event_names_line(self):
        with pytest.raises(EventDecodeError, match="line 1: Unknown event type"):
            list(iter_events(['{"type": "nope"}']))

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "run.ndjson"
        path.write_text("\n".join(json.dumps(e) for e in [
            {"type": "run-started"},
            {"type": "source-read", "uri": "a.feature", "source": "Feature: A\n"},
            {"type": "run-finished"},
        ]))
        events = list(load_events(path))
        assert [e.type for e in events] == ["run-started", "source-read", "run-finished"]
