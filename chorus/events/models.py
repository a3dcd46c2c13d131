"""
Lifecycle event models emitted by a BDD test execution engine.

This module defines the fixed event vocabulary the correlator reacts to:
run start/finish, feature source reads, test case and step start/finish,
and the embed/write side channels used for attachments and free text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


class Status(str, Enum):
    """Outcome of a step or test case as reported by the engine."""
    PASSED = "passed"
    SKIPPED = "skipped"
    PENDING = "pending"
    UNDEFINED = "undefined"
    AMBIGUOUS = "ambiguous"
    FAILED = "failed"
    UNUSED = "unused"


class HookType(str, Enum):
    """Kind of setup/teardown hook."""
    BEFORE = "before"
    AFTER = "after"
    BEFORE_STEP = "before_step"
    AFTER_STEP = "after_step"


@dataclass
class Result:
    """Result of a step or test case execution."""
    status: Status
    error_message: str | None = None
    stack_trace: str | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Step arguments
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class DocString:
    """Multi-line string argument of a step."""
    content: str
    media_type: str | None = None


@dataclass
class DataTable:
    """Table argument of a step, one list of cell values per row."""
    rows: list[list[str]] = field(default_factory=list)


StepArgument = Union[DocString, DataTable]


@dataclass
class StepDefinition:
    """
    Metadata the engine exposes about the glue code matched by a step.

    Attributes:
        location: Code location of the step definition, e.g.
            "steps.calculator.add_numbers(int, int)"
        attributes: Declared attributes in "key:value" or "value" form
        test_case_id: Declared test case ID template, if any
        parametrized: Whether the declared ID gets the argument values appended
    """
    location: str | None = None
    attributes: list[str] = field(default_factory=list)
    test_case_id: str | None = None
    parametrized: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# Test steps
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class PickleStep:
    """An ordinary Gherkin step of a resolved test case."""
    line: int
    text: str
    keyword: str | None = None
    argument: StepArgument | None = None
    definition_arguments: list[str] = field(default_factory=list)
    definition: StepDefinition | None = None


@dataclass
class HookStep:
    """A hook executed around a test case or step."""
    hook_type: HookType
    code_location: str = ""


TestStep = Union[PickleStep, HookStep]


# ─────────────────────────────────────────────────────────────────────────────
# Events
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class RunStarted:
    """The first event of a run."""
    type: ClassVar[str] = "run-started"


@dataclass
class SourceRead:
    """A feature file was read; carries its raw source text."""
    type: ClassVar[str] = "source-read"
    uri: str
    source: str


@dataclass
class CaseStarted:
    """A test case (scenario or one outline row) started."""
    type: ClassVar[str] = "case-started"
    uri: str
    line: int
    name: str
    tags: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[int, str]:
        return self.line, self.uri


@dataclass
class StepStarted:
    """A step or hook of the test case at (uri, line) started."""
    type: ClassVar[str] = "step-started"
    uri: str
    line: int
    step: TestStep

    @property
    def key(self) -> tuple[int, str]:
        return self.line, self.uri


@dataclass
class StepFinished:
    """A step or hook of the test case at (uri, line) finished."""
    type: ClassVar[str] = "step-finished"
    uri: str
    line: int
    step: TestStep
    result: Result

    @property
    def key(self) -> tuple[int, str]:
        return self.line, self.uri


@dataclass
class CaseFinished:
    """The test case at (uri, line) finished."""
    type: ClassVar[str] = "case-finished"
    uri: str
    line: int
    result: Result

    @property
    def key(self) -> tuple[int, str]:
        return self.line, self.uri


@dataclass
class RunFinished:
    """The last event of a run."""
    type: ClassVar[str] = "run-finished"


@dataclass
class Embed:
    """Binary data attached by test code, optionally scoped to a test case."""
    type: ClassVar[str] = "embed"
    data: bytes
    media_type: str | None = None
    uri: str | None = None
    line: int | None = None

    @property
    def key(self) -> tuple[int, str] | None:
        if self.uri is None or self.line is None:
            return None
        return self.line, self.uri


@dataclass
class Write:
    """Free text written by test code, optionally scoped to a test case."""
    type: ClassVar[str] = "write"
    text: str
    uri: str | None = None
    line: int | None = None

    @property
    def key(self) -> tuple[int, str] | None:
        if self.uri is None or self.line is None:
            return None
        return self.line, self.uri


Event = Union[
    RunStarted,
    SourceRead,
    CaseStarted,
    StepStarted,
    StepFinished,
    CaseFinished,
    RunFinished,
    Embed,
    Write,
]

EVENT_TYPES: dict[str, type] = {
    cls.type: cls
    for cls in (
        RunStarted,
        SourceRead,
        CaseStarted,
        StepStarted,
        StepFinished,
        CaseFinished,
        RunFinished,
        Embed,
        Write,
    )
}
