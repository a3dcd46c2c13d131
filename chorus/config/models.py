"""
Typed data structures for reporter configuration.

This module contains all enums and dataclasses that represent
the internal typed structure of a parsed config file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────

class HierarchyType(str, Enum):
    """Shape of the reported item tree."""
    STEP = "step"  # feature / scenario / step, steps carry statistics
    SCENARIO = "scenario"  # root suite / feature / scenario, steps without statistics


class LaunchMode(str, Enum):
    """Launch visibility mode on the reporting service."""
    DEFAULT = "DEFAULT"
    DEBUG = "DEBUG"


# ─────────────────────────────────────────────────────────────────────────────
# Launch
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class LaunchConfig:
    """Settings of the launch a run is reported into."""
    name: str
    description: str | None = None
    mode: LaunchMode = LaunchMode.DEFAULT
    # "key:value" or "value" entries
    attributes: list[str] = field(default_factory=list)
    rerun: bool = False
    rerun_of: str | None = None
    # Reported as the "skippedIssue" system attribute when set
    skipped_issue: bool | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Reporter
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ReporterConfig:
    """Fully parsed and validated reporter configuration."""
    version: int
    launch: LaunchConfig
    endpoint: str | None = None  # Required unless dry-running
    project: str | None = None  # Required unless dry-running
    api_key: str | None = None
    hierarchy: HierarchyType = HierarchyType.STEP
    callback_reporting: bool = False
    source_root: str = "src"
    timeout_ms: int = 30000
