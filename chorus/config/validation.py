"""
Schema validation for reporter config files.

This module contains the validation logic that checks raw parsed YAML
against the config schema and reports errors with helpful messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .models import HierarchyType, LaunchMode


# ─────────────────────────────────────────────────────────────────────────────
# Validation Result Types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ValidationError:
    """Represents a single validation error with context."""
    path: str  # e.g., "launch.attributes[0]"
    message: str
    value: Any = None
    suggestion: str | None = None

    def __str__(self) -> str:
        parts = [f"❌ {self.path}: {self.message}"]
        if self.value is not None:
            parts.append(f"   Got: {repr(self.value)}")
        if self.suggestion:
            parts.append(f"   💡 {self.suggestion}")
        return "\n".join(parts)


@dataclass
class ValidationResult:
    """Result of schema validation."""
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(
        self,
        path: str,
        message: str,
        value: Any = None,
        suggestion: str | None = None
    ) -> None:
        self.errors.append(ValidationError(path, message, value, suggestion))

    def __str__(self) -> str:
        if self.is_valid:
            return "✅ Config validation passed"
        lines = [f"Config validation failed with {len(self.errors)} error(s):\n"]
        lines.extend(str(e) for e in self.errors)
        return "\n".join(lines)


# ─────────────────────────────────────────────────────────────────────────────
# Config Validator
# ─────────────────────────────────────────────────────────────────────────────

class ConfigValidator:
    """Validates raw parsed YAML against the reporter config schema."""

    REQUIRED_TOP_LEVEL = {"version", "launch"}
    OPTIONAL_TOP_LEVEL = {
        "endpoint",
        "project",
        "api_key",
        "hierarchy",
        "callback_reporting",
        "source_root",
        "timeout_ms",
    }
    LAUNCH_FIELDS = {"name", "description", "mode", "attributes", "rerun", "rerun_of", "skipped_issue"}
    VALID_HIERARCHIES = {h.value for h in HierarchyType}
    VALID_MODES = {m.value for m in LaunchMode}

    def __init__(self, data: dict[str, Any]):
        self.data = data
        self.result = ValidationResult()

    def validate(self) -> ValidationResult:
        """Run all validation checks and return result."""
        self._validate_top_level()
        if not self.result.is_valid:
            return self.result

        self._validate_version()
        self._validate_service()
        self._validate_launch()
        self._validate_reporting()

        return self.result

    def _validate_top_level(self) -> None:
        """Check required and unknown top-level keys."""
        keys = set(self.data.keys())
        missing = self.REQUIRED_TOP_LEVEL - keys
        unknown = keys - self.REQUIRED_TOP_LEVEL - self.OPTIONAL_TOP_LEVEL

        for key in sorted(missing):
            self.result.add_error(
                key,
                f"Required field '{key}' is missing",
                suggestion=f"Add '{key}:' to your config file"
            )

        for key in sorted(unknown):
            self.result.add_error(
                key,
                f"Unknown top-level field '{key}'",
                suggestion=f"Valid fields are: {', '.join(sorted(self.REQUIRED_TOP_LEVEL | self.OPTIONAL_TOP_LEVEL))}"
            )

    def _validate_version(self) -> None:
        version = self.data.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            self.result.add_error(
                "version",
                "Must be an integer",
                value=version,
                suggestion="Use 'version: 1'"
            )
        elif version < 1:
            self.result.add_error(
                "version",
                "Must be >= 1",
                value=version
            )

    def _validate_service(self) -> None:
        endpoint = self.data.get("endpoint")
        if endpoint is not None:
            if not isinstance(endpoint, str):
                self.result.add_error(
                    "endpoint",
                    "Must be a string",
                    value=endpoint
                )
            elif not (endpoint.startswith("http://") or endpoint.startswith("https://")):
                self.result.add_error(
                    "endpoint",
                    "Must be a valid HTTP(S) URL",
                    value=endpoint,
                    suggestion="URL should start with 'http://' or 'https://'"
                )

        project = self.data.get("project")
        if project is not None and (not isinstance(project, str) or not project.strip()):
            self.result.add_error(
                "project",
                "Must be a non-empty string",
                value=project
            )

        api_key = self.data.get("api_key")
        if api_key is not None and not isinstance(api_key, str):
            self.result.add_error(
                "api_key",
                "Must be a string",
                value=api_key,
                suggestion="Use 'api_key: \"{{env.CHORUS_API_KEY}}\"' to read it from the environment"
            )

        timeout = self.data.get("timeout_ms")
        if timeout is not None:
            if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
                self.result.add_error(
                    "timeout_ms",
                    "Must be a positive integer (milliseconds)",
                    value=timeout
                )

    def _validate_launch(self) -> None:
        launch = self.data.get("launch")
        if not isinstance(launch, dict):
            self.result.add_error(
                "launch",
                "Must be an object",
                value=launch
            )
            return

        for key in sorted(set(launch.keys()) - self.LAUNCH_FIELDS):
            self.result.add_error(
                f"launch.{key}",
                f"Unknown launch field '{key}'",
                suggestion=f"Valid fields are: {', '.join(sorted(self.LAUNCH_FIELDS))}"
            )

        name = launch.get("name")
        if not isinstance(name, str):
            self.result.add_error(
                "launch.name",
                "Must be a string",
                value=name
            )
        elif not name.strip():
            self.result.add_error(
                "launch.name",
                "Cannot be empty",
                suggestion="Provide a descriptive name for your launch"
            )

        description = launch.get("description")
        if description is not None and not isinstance(description, str):
            self.result.add_error(
                "launch.description",
                "Must be a string",
                value=description
            )

        mode = launch.get("mode")
        if mode is not None and mode not in self.VALID_MODES:
            self.result.add_error(
                "launch.mode",
                "Invalid launch mode",
                value=mode,
                suggestion=f"Valid modes: {', '.join(sorted(self.VALID_MODES))}"
            )

        self._validate_attributes(launch.get("attributes"))

        for flag in ("rerun", "skipped_issue"):
            value = launch.get(flag)
            if value is not None and not isinstance(value, bool):
                self.result.add_error(
                    f"launch.{flag}",
                    "Must be a boolean",
                    value=value
                )

        rerun_of = launch.get("rerun_of")
        if rerun_of is not None:
            if not isinstance(rerun_of, str):
                self.result.add_error(
                    "launch.rerun_of",
                    "Must be a string (launch UUID)",
                    value=rerun_of
                )
            elif not launch.get("rerun"):
                self.result.add_error(
                    "launch.rerun_of",
                    "Only valid for rerun launches",
                    value=rerun_of,
                    suggestion="Add 'rerun: true' to the launch section"
                )

    def _validate_attributes(self, attributes: Any) -> None:
        if attributes is None:
            return
        if not isinstance(attributes, list):
            self.result.add_error(
                "launch.attributes",
                "Must be a list",
                value=attributes,
                suggestion="Use entries like 'build:1234' or 'smoke'"
            )
            return

        for i, attribute in enumerate(attributes):
            if not isinstance(attribute, str) or not attribute.strip():
                self.result.add_error(
                    f"launch.attributes[{i}]",
                    "Must be a non-empty string",
                    value=attribute
                )
            elif attribute.strip().endswith(":"):
                self.result.add_error(
                    f"launch.attributes[{i}]",
                    "Attribute value cannot be empty",
                    value=attribute,
                    suggestion="Use 'key:value' or just 'value'"
                )

    def _validate_reporting(self) -> None:
        hierarchy = self.data.get("hierarchy")
        if hierarchy is not None and hierarchy not in self.VALID_HIERARCHIES:
            self.result.add_error(
                "hierarchy",
                "Invalid hierarchy type",
                value=hierarchy,
                suggestion=f"Valid hierarchies: {', '.join(sorted(self.VALID_HIERARCHIES))}"
            )

        callback_reporting = self.data.get("callback_reporting")
        if callback_reporting is not None and not isinstance(callback_reporting, bool):
            self.result.add_error(
                "callback_reporting",
                "Must be a boolean",
                value=callback_reporting
            )

        source_root = self.data.get("source_root")
        if source_root is not None and (not isinstance(source_root, str) or not source_root):
            self.result.add_error(
                "source_root",
                "Must be a non-empty string",
                value=source_root,
                suggestion="Code references are cut from the first occurrence of this path segment"
            )
