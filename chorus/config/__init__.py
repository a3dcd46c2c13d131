"""
Reporter Configuration

This package loads, validates and parses the YAML config file that tells
the reporter where to send results and how to shape the item tree.

Usage:
    from chorus.config import load_config

    config, result = load_config("chorus.yaml")
    if not result.is_valid:
        print(result)
"""

# Loader functions
from .loader import load_config, validate_config_yaml

# Models
from .models import (
    HierarchyType,
    LaunchConfig,
    LaunchMode,
    ReporterConfig,
)

# Parser
from .parser import ConfigParser

# Validation
from .validation import ConfigValidator, ValidationError, ValidationResult

__all__ = [
    # Loader functions
    "load_config",
    "validate_config_yaml",
    # Models
    "HierarchyType",
    "LaunchConfig",
    "LaunchMode",
    "ReporterConfig",
    # Parser
    "ConfigParser",
    # Validation
    "ConfigValidator",
    "ValidationError",
    "ValidationResult",
]
