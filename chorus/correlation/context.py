"""
Per-feature and per-scenario correlation state.

A FeatureContext exists for every feature file with a running or finished
scenario until the run ends. A ScenarioContext exists for each executing
test case (every outline row gets its own) from case-started until
case-finished.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from ..events import CaseStarted, PickleStep, Status
from ..reporting import tag_attributes
from ..transport import ItemAttribute, ItemHandle
from .errors import ContractViolation, UnknownStepLineError
from .structure import (
    Background,
    FeatureTree,
    GherkinStep,
    ScenarioDefinition,
    locate_scenario,
    outline_row_index,
)

BACKGROUND_INFIX = ": "


@dataclass(eq=False)
class FeatureContext:
    """A feature file and the remote item reporting it."""
    uri: str
    feature: FeatureTree
    attributes: list[ItemAttribute] = field(default_factory=list)
    handle: ItemHandle | None = None

    @classmethod
    def create(cls, uri: str, feature: FeatureTree) -> FeatureContext:
        return cls(uri=uri, feature=feature, attributes=tag_attributes(feature.tags))

    def scenario_context(self, case: CaseStarted) -> ScenarioContext:
        """
        Build the context of a test case of this feature.

        Raises:
            ScenarioNotFoundError: If the case matches no scenario or outline row
        """
        definition = locate_scenario(self.feature, case.line, case.name)
        backgrounds = [
            b for b in (self.feature.background, definition.rule_background) if b is not None
        ]
        return ScenarioContext(
            feature_uri=self.uri,
            definition=definition,
            line=case.line if definition.is_outline else definition.line,
            tags=case.tags,
            backgrounds=backgrounds,
        )


class ScenarioState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    FINISHED = "finished"


class ScenarioContext:
    """
    Mutable state of one executing test case.

    Attributes:
        feature_uri: URI of the feature file the case belongs to
        definition: Scenario or outline the case was created from
        line: Case line (example row line for outlines)
        outline_iteration: 1-based example row position, None for plain scenarios
        attributes: Attributes derived from the case tags
        open_step: Handle of the step item currently open
        open_hook: Handle of the hook item currently open
        hook_status: Latest status of the open hook
        current_text: Text of the most recently started step
    """

    def __init__(
        self,
        feature_uri: str,
        definition: ScenarioDefinition,
        line: int,
        tags: list[str] | None = None,
        backgrounds: list[Background] | None = None,
    ):
        self.feature_uri = feature_uri
        self.definition = definition
        self.line = line
        self.outline_iteration = (
            outline_row_index(definition, line) if definition.is_outline else None
        )
        self.attributes = tag_attributes(tags or [])

        backgrounds = backgrounds or []
        self._background_keyword = backgrounds[0].keyword if backgrounds else None
        self._background_steps: deque[GherkinStep] = deque(
            step for background in backgrounds for step in background.steps
        )
        self._steps: dict[int, GherkinStep] = {
            step.line: step for background in backgrounds for step in background.steps
        }
        self._steps.update((step.line, step) for step in definition.steps)

        self._handle: ItemHandle | None = None
        self.state = ScenarioState.CREATED
        self.open_step: ItemHandle | None = None
        self.open_hook: ItemHandle | None = None
        self.hook_status: Status | None = None
        self.current_text: str | None = None

    @property
    def key(self) -> tuple[int, str]:
        return self.line, self.feature_uri

    @property
    def handle(self) -> ItemHandle:
        """
        Handle of the scenario item.

        Raises:
            ContractViolation: If the scenario item was never started
        """
        if self._handle is None:
            raise ContractViolation(
                f"Scenario {self.definition.name!r} at {self.feature_uri}:{self.line} "
                f"has not been started"
            )
        return self._handle

    @handle.setter
    def handle(self, handle: ItemHandle) -> None:
        if self._handle is not None:
            raise ContractViolation(
                f"Attempt to re-set item handle of scenario {self.definition.name!r} "
                f"at {self.feature_uri}:{self.line}"
            )
        self._handle = handle
        self.state = ScenarioState.RUNNING

    @property
    def started(self) -> bool:
        return self._handle is not None

    def finish(self) -> ItemHandle:
        """
        Mark the scenario finished and return its item handle.

        Raises:
            ContractViolation: If the scenario was never started or already finished
        """
        handle = self.handle
        if self.state == ScenarioState.FINISHED:
            raise ContractViolation(
                f"Scenario {self.definition.name!r} at {self.feature_uri}:{self.line} "
                f"is already finished"
            )
        self.state = ScenarioState.FINISHED
        return handle

    # ─────────────────────────────────────────────────────────────────────────
    # Steps
    # ─────────────────────────────────────────────────────────────────────────

    def get_step(self, step: PickleStep) -> GherkinStep:
        """
        Feature file step on the line of an executing step.

        Raises:
            UnknownStepLineError: If neither the scenario nor its background has that line
        """
        try:
            return self._steps[step.line]
        except KeyError:
            raise UnknownStepLineError(
                f"Unknown line {step.line} for feature {self.feature_uri} "
                f"scenario {self.definition.name!r}"
            ) from None

    def with_background(self) -> bool:
        return bool(self._background_steps)

    def next_background_step(self) -> GherkinStep:
        return self._background_steps.popleft()

    @property
    def background_prefix(self) -> str:
        """Name prefix of background steps, e.g. "BACKGROUND: "."""
        if self._background_keyword is None:
            return ""
        return self._background_keyword.upper() + BACKGROUND_INFIX

    def __repr__(self) -> str:
        return (
            f"ScenarioContext({self.definition.name!r}, {self.feature_uri}:{self.line}, "
            f"{self.state.value})"
        )
