"""
Engine Lifecycle Events

This package defines the events a BDD test engine emits while running
features, and a loader for recorded event streams.

Usage:
    from chorus.events import load_events

    for event in load_events("run.ndjson"):
        correlator.handle(event)
"""

# Models
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
    StepArgument,
    StepDefinition,
    StepFinished,
    StepStarted,
    TestStep,
    Write,
)

# Loader
from .loader import EventDecodeError, iter_events, load_events, parse_event

__all__ = [
    # Models
    "EVENT_TYPES",
    "CaseFinished",
    "CaseStarted",
    "DataTable",
    "DocString",
    "Embed",
    "Event",
    "HookStep",
    "HookType",
    "PickleStep",
    "Result",
    "RunFinished",
    "RunStarted",
    "SourceRead",
    "Status",
    "StepArgument",
    "StepDefinition",
    "StepFinished",
    "StepStarted",
    "TestStep",
    "Write",
    # Loader
    "EventDecodeError",
    "iter_events",
    "load_events",
    "parse_event",
]
