"""
Shapes of the reported item tree.

The correlator reports every event the same way; a HierarchyStrategy only
decides item types, whether step-level items carry statistics and whether
features are wrapped in a synthetic root item.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..config import HierarchyType
from ..transport import StartItemRequest


@dataclass(frozen=True)
class HierarchyStrategy:
    """
    Attributes:
        name: Short name of the shape
        feature_item_type: Item type of features
        scenario_item_type: Item type of scenarios
        step_has_stats: hasStats flag of step and hook items (None leaves it unset)
        root_item_name: Name of the synthetic root item, None for no root
        root_item_type: Item type of the synthetic root item
    """
    name: str
    feature_item_type: str
    scenario_item_type: str
    step_has_stats: bool | None = None
    root_item_name: str | None = None
    root_item_type: str = "SUITE"

    @property
    def has_root(self) -> bool:
        return self.root_item_name is not None

    def root_item_request(self, start_time: datetime) -> StartItemRequest | None:
        if self.root_item_name is None:
            return None
        return StartItemRequest(
            name=self.root_item_name,
            type=self.root_item_type,
            start_time=start_time,
        )


# Feature / scenario / step, steps carry statistics
STEP_HIERARCHY = HierarchyStrategy(
    name="step",
    feature_item_type="STORY",
    scenario_item_type="SCENARIO",
)

# Root / feature / scenario, scenarios are reported as test steps and
# their steps as nested steps without statistics
SCENARIO_HIERARCHY = HierarchyStrategy(
    name="scenario",
    feature_item_type="STORY",
    scenario_item_type="STEP",
    step_has_stats=False,
    root_item_name="Root User Story",
)

HIERARCHIES: dict[HierarchyType, HierarchyStrategy] = {
    HierarchyType.STEP: STEP_HIERARCHY,
    HierarchyType.SCENARIO: SCENARIO_HIERARCHY,
}


def hierarchy_for(hierarchy: HierarchyType | str) -> HierarchyStrategy:
    """
    Strategy for a configured hierarchy type.

    Raises:
        ValueError: If the hierarchy type is unknown
    """
    return HIERARCHIES[HierarchyType(hierarchy)]
