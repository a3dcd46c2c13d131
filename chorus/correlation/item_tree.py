"""
Side index of reported items for callback reporting.

Maps feature URI -> scenario line -> step text to the handles of the
items reporting them, so results produced after the fact (for example by
an external system calling back) can be attached to the right item.
The correlator only writes to it when callback reporting is enabled.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..transport import ItemHandle


@dataclass
class ItemLeaf:
    handle: ItemHandle
    children: dict[str, ItemLeaf] = field(default_factory=dict)


class ItemTree:
    """
    Nested handle index, scoped to one run.

    All keys are strings. Removing a missing entry is a no-op.
    """

    def __init__(self) -> None:
        self.launch: ItemHandle | None = None
        self.items: dict[str, ItemLeaf] = {}
        self._lock = threading.RLock()

    def add_feature(self, uri: str, handle: ItemHandle) -> None:
        with self._lock:
            self.items[str(uri)] = ItemLeaf(handle)

    def remove_feature(self, uri: str) -> None:
        with self._lock:
            self.items.pop(str(uri), None)

    def add_scenario(self, uri: str, line: int, handle: ItemHandle) -> None:
        with self._lock:
            feature = self.items.get(str(uri))
            if feature is not None:
                feature.children[str(line)] = ItemLeaf(handle)

    def remove_scenario(self, uri: str, line: int) -> None:
        with self._lock:
            feature = self.items.get(str(uri))
            if feature is not None:
                feature.children.pop(str(line), None)

    def add_step(self, uri: str, line: int, text: str, handle: ItemHandle) -> None:
        with self._lock:
            scenario = self._scenario(uri, line)
            if scenario is not None:
                scenario.children[text] = ItemLeaf(handle)

    def remove_step(self, uri: str, line: int, text: str | None) -> None:
        with self._lock:
            scenario = self._scenario(uri, line)
            if scenario is not None and text is not None:
                scenario.children.pop(text, None)

    def get(self, uri: str, line: int | None = None, text: str | None = None) -> ItemLeaf | None:
        """Leaf for a feature, one of its scenarios, or one of a scenario's steps."""
        with self._lock:
            leaf = self.items.get(str(uri))
            if leaf is None or line is None:
                return leaf
            leaf = leaf.children.get(str(line))
            if leaf is None or text is None:
                return leaf
            return leaf.children.get(text)

    def _scenario(self, uri: str, line: int) -> ItemLeaf | None:
        feature = self.items.get(str(uri))
        if feature is None:
            return None
        return feature.children.get(str(line))

    def clear(self) -> None:
        with self._lock:
            self.items.clear()
            self.launch = None
