"""
Event stream loader for recorded engine runs.

A recorded run is newline-delimited JSON: one event object per line with a
"type" discriminator, e.g.

    {"type": "case-started", "uri": "features/calc.feature", "line": 3, "name": "Add"}

Binary payloads of "embed" events are base64-encoded in the "data" field.
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path
from typing import Any, Iterable, Iterator

from .models import (
    EVENT_TYPES,
    CaseFinished,
    CaseStarted,
    DataTable,
    DocString,
    Embed,
    Event,
    HookStep,
    HookType,
    PickleStep,
    Result,
    RunFinished,
    RunStarted,
    SourceRead,
    Status,
    StepDefinition,
    StepFinished,
    StepStarted,
    TestStep,
    Write,
)


class EventDecodeError(ValueError):
    """Raised when a recorded event cannot be decoded."""

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


def load_events(path: str | Path) -> Iterator[Event]:
    """
    Lazily load events from an NDJSON file.

    Args:
        path: Path to the recorded event stream

    Yields:
        Decoded events in file order

    Raises:
        EventDecodeError: If a line is not a valid event
    """
    with open(path, encoding="utf-8") as f:
        yield from iter_events(f)


def iter_events(lines: Iterable[str]) -> Iterator[Event]:
    """Decode events from an iterable of NDJSON lines, skipping blank ones."""
    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise EventDecodeError(f"Invalid JSON: {e}", number) from e
        try:
            event = parse_event(data)
        except EventDecodeError as e:
            raise EventDecodeError(str(e), number) from e
        yield event


def parse_event(data: Any) -> Event:
    """Convert one decoded JSON object to a typed event."""
    if not isinstance(data, dict):
        raise EventDecodeError(f"Event must be an object, got {type(data).__name__}")

    event_type = data.get("type")
    if event_type not in EVENT_TYPES:
        raise EventDecodeError(
            f"Unknown event type {event_type!r}, expected one of: "
            f"{', '.join(sorted(EVENT_TYPES))}"
        )

    try:
        if event_type == RunStarted.type:
            return RunStarted()
        if event_type == RunFinished.type:
            return RunFinished()
        if event_type == SourceRead.type:
            return SourceRead(uri=data["uri"], source=data["source"])
        if event_type == CaseStarted.type:
            return CaseStarted(
                uri=data["uri"],
                line=int(data["line"]),
                name=data.get("name", ""),
                tags=list(data.get("tags", [])),
            )
        if event_type == StepStarted.type:
            return StepStarted(
                uri=data["uri"],
                line=int(data["line"]),
                step=_parse_step(data["step"]),
            )
        if event_type == StepFinished.type:
            return StepFinished(
                uri=data["uri"],
                line=int(data["line"]),
                step=_parse_step(data["step"]),
                result=_parse_result(data["result"]),
            )
        if event_type == CaseFinished.type:
            return CaseFinished(
                uri=data["uri"],
                line=int(data["line"]),
                result=_parse_result(data["result"]),
            )
        if event_type == Embed.type:
            return Embed(
                data=base64.b64decode(data["data"], validate=True),
                media_type=data.get("media_type"),
                uri=data.get("uri"),
                line=data.get("line"),
            )
        return Write(text=data["text"], uri=data.get("uri"), line=data.get("line"))
    except KeyError as e:
        raise EventDecodeError(f"{event_type}: missing required field {e}") from e
    except binascii.Error as e:
        raise EventDecodeError(f"{event_type}: invalid base64 data: {e}") from e
    except (TypeError, ValueError) as e:
        raise EventDecodeError(f"{event_type}: {e}") from e


def _parse_result(data: dict[str, Any]) -> Result:
    return Result(
        status=Status(data["status"]),
        error_message=data.get("error_message"),
        stack_trace=data.get("stack_trace"),
    )


def _parse_step(data: dict[str, Any]) -> TestStep:
    if "hook_type" in data:
        return HookStep(
            hook_type=HookType(data["hook_type"]),
            code_location=data.get("code_location", ""),
        )

    argument = None
    if "doc_string" in data:
        doc = data["doc_string"]
        argument = DocString(content=doc["content"], media_type=doc.get("media_type"))
    elif "data_table" in data:
        argument = DataTable(rows=[[str(cell) for cell in row] for row in data["data_table"]])

    definition = None
    if "definition" in data:
        d = data["definition"]
        definition = StepDefinition(
            location=d.get("location"),
            attributes=list(d.get("attributes", [])),
            test_case_id=d.get("test_case_id"),
            parametrized=bool(d.get("parametrized", False)),
        )

    return PickleStep(
        line=int(data["line"]),
        text=data["text"],
        keyword=data.get("keyword"),
        argument=argument,
        definition_arguments=[str(a) for a in data.get("arguments", [])],
        definition=definition,
    )
