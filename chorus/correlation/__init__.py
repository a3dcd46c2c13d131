"""
Event-to-Hierarchy Correlation

This package tracks where a running test engine is in the feature ->
scenario -> step/hook structure and reports each transition under the
right parent item.

Features:
    - Feature source cache with memoized Gherkin parsing
    - Scenario lookup by line/name and outline example row numbering
    - Per-scenario state: background queue, open step/hook, item handle
    - Two tree shapes (step and scenario hierarchies)
    - Optional item tree index for callback reporting

Usage:
    from chorus.correlation import HierarchyCorrelator
    from chorus.transport import RecordingClient

    correlator = HierarchyCorrelator(RecordingClient(), config)
    for event in load_events("run.ndjson"):
        correlator.handle(event)
"""

# Errors
from .errors import (
    ContractViolation,
    CorrelationError,
    FeatureParseError,
    OutlineRowNotFoundError,
    ScenarioNotFoundError,
    UnknownStepLineError,
)

# Structure
from .structure import (
    Background,
    Examples,
    ExamplesRow,
    FeatureTree,
    GherkinStep,
    ScenarioDefinition,
    locate_scenario,
    outline_row_index,
    parse_feature,
)

# State
from .source_index import SourceIndex
from .context import FeatureContext, ScenarioContext, ScenarioState
from .item_tree import ItemLeaf, ItemTree

# Hierarchy
from .hierarchy import (
    SCENARIO_HIERARCHY,
    STEP_HIERARCHY,
    HierarchyStrategy,
    hierarchy_for,
)

# Correlator
from .correlator import HierarchyCorrelator

__all__ = [
    # Errors
    "ContractViolation",
    "CorrelationError",
    "FeatureParseError",
    "OutlineRowNotFoundError",
    "ScenarioNotFoundError",
    "UnknownStepLineError",
    # Structure
    "Background",
    "Examples",
    "ExamplesRow",
    "FeatureTree",
    "GherkinStep",
    "ScenarioDefinition",
    "locate_scenario",
    "outline_row_index",
    "parse_feature",
    # State
    "SourceIndex",
    "FeatureContext",
    "ScenarioContext",
    "ScenarioState",
    "ItemLeaf",
    "ItemTree",
    # Hierarchy
    "SCENARIO_HIERARCHY",
    "STEP_HIERARCHY",
    "HierarchyStrategy",
    "hierarchy_for",
    # Correlator
    "HierarchyCorrelator",
]
