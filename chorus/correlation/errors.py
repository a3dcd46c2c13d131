"""
Errors raised while correlating engine events with the item tree.

All of these signal that the event stream broke an assumption about the
engine's output. They are raised, never repaired or retried.
"""

from __future__ import annotations


class CorrelationError(RuntimeError):
    """Base class for event correlation failures."""


class ContractViolation(CorrelationError):
    """The event stream violated the engine's well-formedness contract."""


class FeatureParseError(CorrelationError):
    """A feature file could not be parsed."""

    def __init__(self, uri: str | None, message: str):
        self.uri = uri
        where = f"{uri}: " if uri else ""
        super().__init__(f"{where}{message}")


class ScenarioNotFoundError(ContractViolation):
    """No scenario or outline row in the feature matches a test case."""


class UnknownStepLineError(ContractViolation):
    """A step event refers to a line the parsed scenario does not have."""


class OutlineRowNotFoundError(ContractViolation):
    """A line is not among the example rows of a scenario outline."""
