"""
Transport layer models for the reporting service.

This module defines the request payloads sent to the reporting service,
the future-backed item handles returned for started items, and the
transport error type.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ReportingError(Exception):
    """A request to the reporting service failed."""

    def __init__(self, message: str, status: int | None = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": self.message}
        if self.status is not None:
            result["status"] = self.status
        if self.data is not None:
            result["data"] = self.data
        return result


def to_epoch_millis(moment: datetime) -> int:
    """Convert a datetime to the epoch milliseconds the service expects."""
    return int(moment.timestamp() * 1000)


# ─────────────────────────────────────────────────────────────────────────────
# Item handles
# ─────────────────────────────────────────────────────────────────────────────

class ItemHandle:
    """
    Forward reference to a remote item (or launch) identifier.

    The identifier is resolved asynchronously; callers store handles and
    pass them as parents without blocking. A handle also collects the
    futures of requests that must complete before the item is finished
    (child finishes and logs).
    """

    def __init__(self, future: Future[str], parent: ItemHandle | None = None):
        self.future = future
        self.parent = parent
        self._dependents: list[Future[Any]] = []
        self._lock = threading.Lock()

    @classmethod
    def resolved(cls, item_id: str, parent: ItemHandle | None = None) -> ItemHandle:
        """Create a handle whose identifier is already known."""
        future: Future[str] = Future()
        future.set_result(item_id)
        return cls(future, parent=parent)

    def result(self, timeout: float | None = None) -> str:
        """Block until the remote identifier is known and return it."""
        return self.future.result(timeout=timeout)

    def done(self) -> bool:
        return self.future.done()

    def add_dependent(self, future: Future[Any]) -> None:
        with self._lock:
            self._dependents.append(future)

    def dependents(self) -> list[Future[Any]]:
        with self._lock:
            return list(self._dependents)

    def __repr__(self) -> str:
        if self.future.done() and self.future.exception() is None:
            return f"ItemHandle({self.future.result()!r})"
        state = "failed" if self.future.done() else "pending"
        return f"ItemHandle(<{state}>)"


# ─────────────────────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ItemAttribute:
    """A key/value label on a launch or item. The key is optional."""
    value: str
    key: str | None = None
    system: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"value": self.value}
        if self.key is not None:
            result["key"] = self.key
        if self.system:
            result["system"] = True
        return result


@dataclass(frozen=True)
class Parameter:
    """A named test parameter."""
    key: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}


@dataclass
class StartLaunchRequest:
    """Request to start a launch."""
    name: str
    start_time: datetime
    mode: str = "DEFAULT"
    attributes: list[ItemAttribute] = field(default_factory=list)
    description: str | None = None
    rerun: bool = False
    rerun_of: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "startTime": to_epoch_millis(self.start_time),
            "mode": self.mode,
            "attributes": [a.to_dict() for a in self.attributes],
            "rerun": self.rerun,
        }
        if self.description is not None:
            result["description"] = self.description
        if self.rerun_of:
            result["rerunOf"] = self.rerun_of
        return result


@dataclass
class StartItemRequest:
    """Request to start a test item (suite, story, scenario, step or hook)."""
    name: str
    type: str
    start_time: datetime
    description: str | None = None
    attributes: list[ItemAttribute] = field(default_factory=list)
    code_ref: str | None = None
    parameters: list[Parameter] = field(default_factory=list)
    test_case_id: str | None = None
    has_stats: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "startTime": to_epoch_millis(self.start_time),
        }
        if self.description:
            result["description"] = self.description
        if self.attributes:
            result["attributes"] = [a.to_dict() for a in self.attributes]
        if self.code_ref is not None:
            result["codeRef"] = self.code_ref
        if self.parameters:
            result["parameters"] = [p.to_dict() for p in self.parameters]
        if self.test_case_id is not None:
            result["testCaseId"] = self.test_case_id
        if self.has_stats is not None:
            result["hasStats"] = self.has_stats
        return result


@dataclass
class FinishRequest:
    """Request to finish an item or a launch."""
    end_time: datetime
    status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"endTime": to_epoch_millis(self.end_time)}
        if self.status is not None:
            result["status"] = self.status
        return result


@dataclass
class Attachment:
    """Binary payload of a log entry."""
    name: str
    content_type: str
    data: bytes


@dataclass
class LogRequest:
    """
    A log entry, optionally bound to an item and carrying an attachment.

    Entries without an item are attached at launch level.
    """
    message: str
    level: str
    time: datetime
    item: ItemHandle | None = None
    attachment: Attachment | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "level": self.level,
            "time": to_epoch_millis(self.time),
        }
