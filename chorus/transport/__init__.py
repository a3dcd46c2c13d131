"""
Reporting Service Transport

This package provides clients for the remote reporting service's item-tree
API (launches, items, logs and attachments).

Usage:
    from chorus.transport import create_client, RecordingClient
    from chorus.config import load_config

    # Create from config
    config, _ = load_config("chorus.yaml")
    client = create_client(config)

    # Or record calls in memory
    client = RecordingClient()

    with client:
        launch = client.start_launch(StartLaunchRequest(name="nightly", start_time=now))
        item = client.start_item(None, StartItemRequest(name="Feature: Login", type="STORY", start_time=now))
"""

# Factory
from .factory import create_client

# Clients
from .base import BaseReportingClient
from .http import HTTPReportingClient
from .memory import RecordedCall, RecordingClient

# Models
from .models import (
    Attachment,
    FinishRequest,
    ItemAttribute,
    ItemHandle,
    LogRequest,
    Parameter,
    ReportingError,
    StartItemRequest,
    StartLaunchRequest,
    to_epoch_millis,
)

__all__ = [
    # Factory
    "create_client",
    # Base
    "BaseReportingClient",
    # Implementations
    "HTTPReportingClient",
    "RecordingClient",
    "RecordedCall",
    # Models
    "Attachment",
    "FinishRequest",
    "ItemAttribute",
    "ItemHandle",
    "LogRequest",
    "Parameter",
    "ReportingError",
    "StartItemRequest",
    "StartLaunchRequest",
    "to_epoch_millis",
]
