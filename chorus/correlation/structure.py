"""
Feature file structure.

This module parses Gherkin source into an immutable tree (feature ->
optional background -> scenarios and outlines -> steps) and provides the
lookups the correlator needs: which scenario a test case belongs to and
which example row of an outline it executes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from gherkin.errors import ParserError
from gherkin.parser import Parser

from ..events import DataTable, DocString, StepArgument
from .errors import FeatureParseError, OutlineRowNotFoundError, ScenarioNotFoundError


# ─────────────────────────────────────────────────────────────────────────────
# Tree nodes
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class GherkinStep:
    """A step as written in the feature file."""
    keyword: str  # includes the trailing space, e.g. "Given "
    text: str
    line: int
    argument: StepArgument | None = None


@dataclass(eq=False)
class Background:
    """Steps prepended to every scenario of a feature (or rule)."""
    keyword: str
    name: str
    line: int
    steps: list[GherkinStep] = field(default_factory=list)


@dataclass(eq=False)
class ExamplesRow:
    line: int
    cells: list[str] = field(default_factory=list)


@dataclass(eq=False)
class Examples:
    """One examples block of a scenario outline."""
    keyword: str
    name: str
    line: int
    tags: list[str] = field(default_factory=list)
    header: list[str] = field(default_factory=list)
    rows: list[ExamplesRow] = field(default_factory=list)


@dataclass(eq=False)
class ScenarioDefinition:
    """A scenario or scenario outline."""
    keyword: str
    name: str
    line: int
    tags: list[str] = field(default_factory=list)
    steps: list[GherkinStep] = field(default_factory=list)
    examples: list[Examples] = field(default_factory=list)
    # Background of the enclosing rule, if the scenario is inside one
    rule_background: Background | None = None

    @property
    def is_outline(self) -> bool:
        return bool(self.examples)

    @cached_property
    def example_row_positions(self) -> dict[int, int]:
        """Line of each example row -> 1-based position across all examples blocks."""
        lines = [row.line for block in self.examples for row in block.rows]
        return {line: position for position, line in enumerate(lines, start=1)}


@dataclass(eq=False)
class FeatureTree:
    """Parsed feature file."""
    keyword: str
    name: str
    line: int
    language: str = "en"
    description: str = ""
    tags: list[str] = field(default_factory=list)
    background: Background | None = None
    scenarios: list[ScenarioDefinition] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def parse_feature(source: str, uri: str | None = None) -> FeatureTree:
    """
    Parse Gherkin source into a FeatureTree.

    Args:
        source: Raw feature file text
        uri: Source identifier, used in error messages

    Returns:
        The parsed feature

    Raises:
        FeatureParseError: If the source is not valid Gherkin or has no feature
    """
    try:
        document = Parser().parse(source)
    except ParserError as e:
        raise FeatureParseError(uri, f"Invalid Gherkin: {e}") from e

    feature = document.get("feature")
    if not feature:
        raise FeatureParseError(uri, "Source contains no feature")

    tree = FeatureTree(
        keyword=feature["keyword"],
        name=feature.get("name", ""),
        line=_line(feature),
        language=feature.get("language", "en"),
        description=(feature.get("description") or "").strip(),
        tags=_tags(feature),
    )

    for child in feature.get("children", []):
        if child.get("background"):
            tree.background = _background(child["background"])
        elif child.get("scenario"):
            tree.scenarios.append(_scenario(child["scenario"]))
        elif child.get("rule"):
            _collect_rule(tree, child["rule"])

    return tree


def _collect_rule(tree: FeatureTree, rule: dict[str, Any]) -> None:
    background = None
    for child in rule.get("children", []):
        if child.get("background"):
            background = _background(child["background"])
        elif child.get("scenario"):
            scenario = _scenario(child["scenario"])
            scenario.rule_background = background
            tree.scenarios.append(scenario)


def _background(data: dict[str, Any]) -> Background:
    return Background(
        keyword=data["keyword"],
        name=data.get("name", ""),
        line=_line(data),
        steps=[_step(s) for s in data.get("steps", [])],
    )


def _scenario(data: dict[str, Any]) -> ScenarioDefinition:
    return ScenarioDefinition(
        keyword=data["keyword"],
        name=data.get("name", ""),
        line=_line(data),
        tags=_tags(data),
        steps=[_step(s) for s in data.get("steps", [])],
        examples=[_examples(e) for e in data.get("examples", [])],
    )


def _examples(data: dict[str, Any]) -> Examples:
    header = data.get("tableHeader") or {}
    return Examples(
        keyword=data["keyword"],
        name=data.get("name", ""),
        line=_line(data),
        tags=_tags(data),
        header=[c["value"] for c in header.get("cells", [])],
        rows=[
            ExamplesRow(line=_line(row), cells=[c["value"] for c in row.get("cells", [])])
            for row in data.get("tableBody", [])
        ],
    )


def _step(data: dict[str, Any]) -> GherkinStep:
    argument: StepArgument | None = None
    if data.get("docString"):
        doc = data["docString"]
        argument = DocString(content=doc["content"], media_type=doc.get("mediaType"))
    elif data.get("dataTable"):
        argument = DataTable(
            rows=[[c["value"] for c in row.get("cells", [])] for row in data["dataTable"]["rows"]]
        )
    return GherkinStep(
        keyword=data["keyword"],
        text=data["text"],
        line=_line(data),
        argument=argument,
    )


def _line(node: dict[str, Any]) -> int:
    return node["location"]["line"]


def _tags(node: dict[str, Any]) -> list[str]:
    return [t["name"] for t in node.get("tags", [])]


# ─────────────────────────────────────────────────────────────────────────────
# Lookups
# ─────────────────────────────────────────────────────────────────────────────

def locate_scenario(tree: FeatureTree, case_line: int, case_name: str) -> ScenarioDefinition:
    """
    Find the scenario a test case was created from.

    A scenario matches when its line and name equal the case's; an outline
    matches when one of its example rows sits on the case's line.

    Raises:
        ScenarioNotFoundError: If nothing in the feature matches
    """
    for scenario in tree.scenarios:
        if scenario.line == case_line and scenario.name == case_name:
            return scenario
        if scenario.is_outline and case_line in scenario.example_row_positions:
            return scenario
    raise ScenarioNotFoundError(
        f"No scenario found for test case {case_name!r} at line {case_line} "
        f"in feature {tree.name!r}"
    )


def outline_row_index(outline: ScenarioDefinition, line: int) -> int:
    """
    1-based position of the example row at a line among all rows of an outline.

    Rows are counted in table order across every examples block; the
    position table is computed once per outline.

    Raises:
        OutlineRowNotFoundError: If no example row is on that line
    """
    try:
        return outline.example_row_positions[line]
    except KeyError:
        raise OutlineRowNotFoundError(
            f"No outline iteration number found for scenario {outline.name!r} at line {line}"
        ) from None
