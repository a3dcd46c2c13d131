"""
Config parser for reporter config files.

This module converts validated YAML data into a typed ReporterConfig.
"""

from __future__ import annotations

import os
import re
from typing import Any, Mapping

from .models import HierarchyType, LaunchConfig, LaunchMode, ReporterConfig


class ConfigParser:
    """Parses and converts validated YAML to a typed ReporterConfig."""

    # Regex for environment interpolation: {{env.KEY}}
    ENV_PATTERN = re.compile(r"\{\{env\.(\w+)\}\}")

    def __init__(self, data: dict[str, Any], env: Mapping[str, str] | None = None):
        self.data = data
        self.env = os.environ if env is None else env

    def parse(self) -> ReporterConfig:
        """Convert validated data to typed ReporterConfig."""
        return ReporterConfig(
            version=self.data["version"],
            launch=self._parse_launch(),
            endpoint=self._interpolate(self.data.get("endpoint")),
            project=self._interpolate(self.data.get("project")),
            api_key=self._interpolate(self.data.get("api_key")),
            hierarchy=HierarchyType(self.data.get("hierarchy", HierarchyType.STEP.value)),
            callback_reporting=self.data.get("callback_reporting", False),
            source_root=self.data.get("source_root", "src"),
            timeout_ms=self.data.get("timeout_ms", 30000),
        )

    def _parse_launch(self) -> LaunchConfig:
        launch = self.data["launch"]
        return LaunchConfig(
            name=self._interpolate(launch["name"]),
            description=self._interpolate(launch.get("description")),
            mode=LaunchMode(launch.get("mode", LaunchMode.DEFAULT.value)),
            attributes=[self._interpolate(a) for a in launch.get("attributes", [])],
            rerun=launch.get("rerun", False),
            rerun_of=launch.get("rerun_of"),
            skipped_issue=launch.get("skipped_issue"),
        )

    def _interpolate(self, value: str | None) -> str | None:
        """Replace {{env.KEY}} templates; unknown variables are left as-is."""
        if value is None:
            return None

        def replace_env(match: re.Match[str]) -> str:
            return str(self.env.get(match.group(1), match.group(0)))

        return self.ENV_PATTERN.sub(replace_env, value)
