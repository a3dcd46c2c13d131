"""
Base client interface for the reporting service.

This module defines the abstract base class that all reporting client
implementations must follow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import FinishRequest, ItemHandle, LogRequest, StartItemRequest, StartLaunchRequest


class BaseReportingClient(ABC):
    """
    Abstract base class for reporting clients.

    Clients are called synchronously from test engine threads. Start calls
    return an ItemHandle immediately; implementations are free to resolve
    the remote identifier later and must order a child request after its
    parent has been created.
    """

    @abstractmethod
    def start_launch(self, rq: StartLaunchRequest) -> ItemHandle:
        """Start a launch and return its handle."""
        pass

    @abstractmethod
    def finish_launch(self, handle: ItemHandle, rq: FinishRequest) -> None:
        """
        Finish a launch.

        Implementations flush every outstanding request first.
        """
        pass

    @abstractmethod
    def start_item(self, parent: ItemHandle | None, rq: StartItemRequest) -> ItemHandle:
        """
        Start an item under a parent, or at launch level when parent is None.
        """
        pass

    @abstractmethod
    def finish_item(self, handle: ItemHandle, rq: FinishRequest) -> None:
        """Finish a previously started item."""
        pass

    @abstractmethod
    def emit_log(self, rq: LogRequest) -> None:
        """Send a log entry."""
        pass

    def emit_attachment(self, rq: LogRequest) -> None:
        """
        Send a log entry carrying binary data.

        Raises:
            ValueError: If the request has no attachment
        """
        if rq.attachment is None:
            raise ValueError("Attachment log request requires an attachment")
        self.emit_log(rq)

    def close(self) -> None:
        """Release client resources."""
        pass

    def __enter__(self) -> BaseReportingClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
