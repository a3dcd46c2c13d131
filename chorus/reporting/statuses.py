"""
Mapping of engine outcomes to reporting statuses and log levels.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..events import Status

logger = logging.getLogger(__name__)


class ItemStatus(str, Enum):
    """Status of a finished item on the reporting service."""
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class LogLevel(str, Enum):
    """Severity of a log entry on the reporting service."""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"


# Several engine outcomes collapse to SKIPPED; the service has no equivalent.
STATUS_MAPPING: dict[Status, ItemStatus] = {
    Status.PASSED: ItemStatus.PASSED,
    Status.FAILED: ItemStatus.FAILED,
    Status.SKIPPED: ItemStatus.SKIPPED,
    Status.PENDING: ItemStatus.SKIPPED,
    Status.AMBIGUOUS: ItemStatus.SKIPPED,
    Status.UNDEFINED: ItemStatus.SKIPPED,
    Status.UNUSED: ItemStatus.SKIPPED,
}


def _as_status(status: Status | str) -> Status | None:
    if isinstance(status, Status):
        return status
    try:
        return Status(str(status).lower())
    except ValueError:
        return None


def map_item_status(status: Status | str | None) -> str | None:
    """
    Map an engine status to a reporting item status.

    Args:
        status: Engine status (enum member or its name/value)

    Returns:
        Item status name, or None when no status was given
    """
    if status is None:
        return None
    known = _as_status(status)
    if known is None:
        logger.warning(
            f"Unable to find direct mapping for item status {status!r}, reporting as SKIPPED"
        )
        return ItemStatus.SKIPPED.value
    return STATUS_MAPPING[known].value


def map_log_level(status: Status | str) -> str:
    """Map an engine status to the level its result messages are logged at."""
    known = _as_status(status)
    if known == Status.PASSED:
        return LogLevel.INFO.value
    if known == Status.SKIPPED:
        return LogLevel.WARN.value
    return LogLevel.ERROR.value
