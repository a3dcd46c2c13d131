"""
Config loader for reporter config files.

This module provides the public API for loading and validating
config files from disk or YAML strings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import ReporterConfig
from .parser import ConfigParser
from .validation import ConfigValidator, ValidationResult


def load_config(
    path: str | Path,
    env: Mapping[str, str] | None = None,
) -> tuple[ReporterConfig | None, ValidationResult]:
    """
    Load and validate a reporter config from a YAML file.

    Args:
        path: Path to the YAML config file
        env: Variables for {{env.KEY}} interpolation (defaults to os.environ)

    Returns:
        Tuple of (ReporterConfig or None, ValidationResult)
        If validation fails, ReporterConfig will be None.

    Example:
        config, result = load_config("chorus.yaml")
        if not result.is_valid:
            print(result)
            sys.exit(1)
        # Use config...
    """
    path = Path(path)

    # Check file exists
    if not path.exists():
        result = ValidationResult()
        result.add_error(
            str(path),
            "File not found",
            suggestion="Check the file path is correct"
        )
        return None, result

    # Parse YAML
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        result = ValidationResult()
        result.add_error(
            str(path),
            f"Invalid YAML syntax: {e}",
            suggestion="Check YAML formatting (indentation, colons, etc.)"
        )
        return None, result

    return _build_config(str(path), data, env)


def validate_config_yaml(
    yaml_string: str,
    env: Mapping[str, str] | None = None,
) -> tuple[ReporterConfig | None, ValidationResult]:
    """
    Validate a reporter config from a YAML string (useful for testing).

    Args:
        yaml_string: YAML content as a string
        env: Variables for {{env.KEY}} interpolation (defaults to os.environ)

    Returns:
        Tuple of (ReporterConfig or None, ValidationResult)
    """
    try:
        data = yaml.safe_load(yaml_string)
    except yaml.YAMLError as e:
        result = ValidationResult()
        result.add_error("yaml", f"Invalid YAML syntax: {e}")
        return None, result

    return _build_config("yaml", data, env)


def _build_config(
    source: str,
    data: Any,
    env: Mapping[str, str] | None,
) -> tuple[ReporterConfig | None, ValidationResult]:
    if not isinstance(data, dict):
        result = ValidationResult()
        result.add_error(
            source,
            "Content must be a YAML object (not a list or scalar)",
            value=type(data).__name__
        )
        return None, result

    validator = ConfigValidator(data)
    result = validator.validate()

    if not result.is_valid:
        return None, result

    parser = ConfigParser(data, env=env)
    return parser.parse(), result
