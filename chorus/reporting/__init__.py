"""
Reporting Helpers

This package maps engine outcomes and Gherkin structure to the fields the
reporting service expects.

Features:
    - Status and log level mapping
    - Item names, doc string and data table rendering
    - Code references, parameters and test case IDs
    - Hook item naming
    - Attachment content type sniffing
    - Launch request with system attributes

Usage:
    from chorus.reporting import map_item_status, build_multiline_argument

    map_item_status(Status.PENDING)   # "SKIPPED"
    build_multiline_argument(DocString("hello"))   # hello between doc string fences
"""

# Statuses
from .statuses import (
    STATUS_MAPPING,
    ItemStatus,
    LogLevel,
    map_item_status,
    map_log_level,
)

# Formatting
from .formatting import (
    COLON_INFIX,
    TABLE_INDENT,
    build_multiline_argument,
    build_name,
    build_parameters,
    build_test_case_id,
    code_ref,
    hook_item,
    hook_message,
    parse_attribute,
    parse_attributes,
    source_path,
    step_code_ref,
    tag_attributes,
)

# Attachments
from .attachments import DEFAULT_MIME_TYPE, detect_mime_type, mime_category

# Launch
from .launch import build_launch_request, system_attributes

__all__ = [
    # Statuses
    "STATUS_MAPPING",
    "ItemStatus",
    "LogLevel",
    "map_item_status",
    "map_log_level",
    # Formatting
    "COLON_INFIX",
    "TABLE_INDENT",
    "build_multiline_argument",
    "build_name",
    "build_parameters",
    "build_test_case_id",
    "code_ref",
    "hook_item",
    "hook_message",
    "parse_attribute",
    "parse_attributes",
    "source_path",
    "step_code_ref",
    "tag_attributes",
    # Attachments
    "DEFAULT_MIME_TYPE",
    "detect_mime_type",
    "mime_category",
    # Launch
    "build_launch_request",
    "system_attributes",
]
