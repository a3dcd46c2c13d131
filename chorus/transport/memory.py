"""
In-memory reporting client.

This module provides a client that records every call instead of sending
it anywhere. It backs dry runs of the CLI and stands in for the remote
service in tests.
"""

from __future__ import annotations

import itertools
import json
import threading
from dataclasses import dataclass
from typing import Any

from .base import BaseReportingClient
from .models import (
    FinishRequest,
    ItemHandle,
    LogRequest,
    StartItemRequest,
    StartLaunchRequest,
)


@dataclass
class RecordedCall:
    """One call made against the recording client."""
    kind: str  # start_launch, finish_launch, start_item, finish_item, log
    item_id: str | None
    parent_id: str | None
    request: Any

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind,
            "item_id": self.item_id,
            "parent_id": self.parent_id,
        }
        if hasattr(self.request, "to_dict"):
            result["request"] = self.request.to_dict()
        if isinstance(self.request, LogRequest) and self.request.attachment is not None:
            result["attachment"] = {
                "name": self.request.attachment.name,
                "content_type": self.request.attachment.content_type,
                "size": len(self.request.attachment.data),
            }
        return result


class RecordingClient(BaseReportingClient):
    """
    Reporting client that keeps every call in memory.

    Handles are resolved immediately with sequential identifiers
    ("launch-1", "item-1", "item-2", ...).
    """

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def _record(self, kind: str, item_id: str | None, parent_id: str | None, request: Any) -> None:
        with self._lock:
            self.calls.append(RecordedCall(kind, item_id, parent_id, request))

    def start_launch(self, rq: StartLaunchRequest) -> ItemHandle:
        launch_id = f"launch-{next(self._ids)}"
        self._record("start_launch", launch_id, None, rq)
        return ItemHandle.resolved(launch_id)

    def finish_launch(self, handle: ItemHandle, rq: FinishRequest) -> None:
        self._record("finish_launch", handle.result(), None, rq)

    def start_item(self, parent: ItemHandle | None, rq: StartItemRequest) -> ItemHandle:
        item_id = f"item-{next(self._ids)}"
        parent_id = parent.result() if parent is not None else None
        self._record("start_item", item_id, parent_id, rq)
        return ItemHandle.resolved(item_id, parent=parent)

    def finish_item(self, handle: ItemHandle, rq: FinishRequest) -> None:
        self._record("finish_item", handle.result(), None, rq)

    def emit_log(self, rq: LogRequest) -> None:
        item_id = rq.item.result() if rq.item is not None else None
        self._record("log", item_id, None, rq)

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def of_kind(self, kind: str) -> list[RecordedCall]:
        with self._lock:
            return [c for c in self.calls if c.kind == kind]

    def started_items(self, item_type: str | None = None) -> list[RecordedCall]:
        """Start calls, optionally filtered by item type."""
        return [
            c for c in self.of_kind("start_item")
            if item_type is None or c.request.type == item_type
        ]

    def finishes(self, item_id: str) -> list[RecordedCall]:
        return [c for c in self.of_kind("finish_item") if c.item_id == item_id]

    def logs(self, level: str | None = None, item_id: str | None = None) -> list[RecordedCall]:
        return [
            c for c in self.of_kind("log")
            if (level is None or c.request.level == level)
            and (item_id is None or c.item_id == item_id)
        ]

    def tree(self) -> list[dict[str, Any]]:
        """
        Build the reported item tree.

        Returns:
            Root items as nested dicts with name, type, status, logs and children
        """
        nodes: dict[str, dict[str, Any]] = {}
        roots: list[dict[str, Any]] = []
        with self._lock:
            calls = list(self.calls)

        for call in calls:
            if call.kind == "start_item":
                node = {
                    "id": call.item_id,
                    "name": call.request.name,
                    "type": call.request.type,
                    "status": None,
                    "logs": [],
                    "children": [],
                }
                nodes[call.item_id] = node
                parent = nodes.get(call.parent_id) if call.parent_id else None
                (parent["children"] if parent else roots).append(node)
            elif call.kind == "finish_item" and call.item_id in nodes:
                nodes[call.item_id]["status"] = call.request.status
            elif call.kind == "log" and call.item_id in nodes:
                nodes[call.item_id]["logs"].append(
                    {"level": call.request.level, "message": call.request.message}
                )
        return roots

    def to_dict(self) -> dict[str, Any]:
        return {
            "calls": [c.to_dict() for c in self.calls],
            "tree": self.tree(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)
