"""
Content type detection for embedded attachments.

The type sniffed from the payload's magic bytes wins over the type the
test code asserted; the asserted type is only a fallback.
"""

from __future__ import annotations

import logging

import filetype

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def detect_mime_type(data: bytes, hint: str | None = None) -> str:
    """
    Detect the MIME type of an attachment payload.

    Args:
        data: Attachment bytes
        hint: Type asserted by the caller, used when sniffing finds nothing

    Returns:
        MIME type (e.g., 'image/png', 'application/pdf')
    """
    kind = filetype.guess(data) if data else None
    if kind is not None:
        return kind.mime

    if hint:
        logger.warning(f"Mime-type not recognized from content, using declared type {hint!r}")
        return hint

    logger.warning(f"Mime-type not recognized from content, using {DEFAULT_MIME_TYPE!r}")
    return DEFAULT_MIME_TYPE


def mime_category(mime_type: str) -> str:
    """Top-level part of a MIME type ("image/png" -> "image"), or "" if malformed."""
    category, sep, subtype = mime_type.partition("/")
    if not sep or not category or not subtype:
        logger.warning(f"Mime-type not found: {mime_type!r}")
        return ""
    return category
