"""
Client factory for creating reporting clients from configuration.

This module provides a factory function to create the appropriate
client based on ReporterConfig.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseReportingClient
from .http import HTTPReportingClient
from .memory import RecordingClient

if TYPE_CHECKING:
    from ..config import ReporterConfig


def create_client(config: ReporterConfig, dry_run: bool = False) -> BaseReportingClient:
    """
    Create a reporting client from ReporterConfig.

    Args:
        config: Parsed reporter configuration
        dry_run: Record calls in memory instead of contacting the service

    Returns:
        RecordingClient for dry runs, HTTPReportingClient otherwise

    Raises:
        ValueError: If the configuration lacks what the HTTP client needs

    Example:
        config, _ = load_config("chorus.yaml")
        with create_client(config) as client:
            correlator = HierarchyCorrelator(client, config)
    """
    if dry_run:
        return RecordingClient()

    if not config.endpoint:
        raise ValueError("HTTP client requires an 'endpoint' in config")
    if not config.project:
        raise ValueError("HTTP client requires a 'project' in config")

    return HTTPReportingClient(
        endpoint=config.endpoint,
        project=config.project,
        api_key=config.api_key,
        timeout_ms=config.timeout_ms,
    )
