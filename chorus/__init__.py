"""
Chorus - BDD Run Reporting Adapter

This package reports the lifecycle events of a behavior-driven test engine
to a remote reporting service as a launch item tree.

Subpackages:
    - events: Engine lifecycle events and the recorded event stream loader
    - correlation: Event-to-hierarchy correlation (features, scenarios, steps, hooks)
    - reporting: Status mapping, item naming and attachment helpers
    - transport: Reporting service clients (HTTP, in-memory recording)
    - config: Reporter config loading and validation

Usage:
    from chorus import load_config, create_client, HierarchyCorrelator, load_events

    config, result = load_config("chorus.yaml")
    client = create_client(config)

    with client:
        correlator = HierarchyCorrelator(client, config)
        for event in load_events("run.ndjson"):
            correlator.handle(event)
"""

__version__ = "0.1.0"

# Re-export config for convenience
from .config import (
    # Loader functions
    load_config,
    validate_config_yaml,
    # Models
    ReporterConfig,
    LaunchConfig,
    LaunchMode,
    HierarchyType,
    # Validation
    ValidationResult,
    ValidationError,
    ConfigValidator,
)

# Re-export events for convenience
from .events import (
    # Loader functions
    load_events,
    parse_event,
    EventDecodeError,
    # Models
    Status,
    HookType,
    Result,
    RunStarted,
    SourceRead,
    CaseStarted,
    StepStarted,
    StepFinished,
    CaseFinished,
    RunFinished,
    Embed,
    Write,
)

# Re-export transport for convenience
from .transport import (
    # Factory
    create_client,
    # Base
    BaseReportingClient,
    # Implementations
    HTTPReportingClient,
    RecordingClient,
    # Models
    ItemHandle,
    ReportingError,
)

# Re-export correlation for convenience
from .correlation import (
    # Correlator
    HierarchyCorrelator,
    HierarchyStrategy,
    ItemTree,
    # Errors
    CorrelationError,
    ContractViolation,
    FeatureParseError,
    # Structure
    parse_feature,
)

__all__ = [
    # Package info
    "__version__",
    # Config - Loader functions
    "load_config",
    "validate_config_yaml",
    # Config - Models
    "ReporterConfig",
    "LaunchConfig",
    "LaunchMode",
    "HierarchyType",
    # Config - Validation
    "ValidationResult",
    "ValidationError",
    "ConfigValidator",
    # Events - Loader functions
    "load_events",
    "parse_event",
    "EventDecodeError",
    # Events - Models
    "Status",
    "HookType",
    "Result",
    "RunStarted",
    "SourceRead",
    "CaseStarted",
    "StepStarted",
    "StepFinished",
    "CaseFinished",
    "RunFinished",
    "Embed",
    "Write",
    # Transport - Factory
    "create_client",
    # Transport - Base
    "BaseReportingClient",
    # Transport - Implementations
    "HTTPReportingClient",
    "RecordingClient",
    # Transport - Models
    "ItemHandle",
    "ReportingError",
    # Correlation
    "HierarchyCorrelator",
    "HierarchyStrategy",
    "ItemTree",
    "CorrelationError",
    "ContractViolation",
    "FeatureParseError",
    "parse_feature",
]
