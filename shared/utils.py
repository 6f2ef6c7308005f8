"""
shared/utils.py

Shared utility functions used across multiple modules.

This module contains common helper functions that are used by various
components of the voice assistant to avoid code duplication and maintain
consistency across the system.
"""

import logging
import uuid
from typing import Optional
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

# Characters JavaScript's encodeURIComponent leaves unescaped.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_header_value(value: Optional[str]) -> str:
    """
    Percent-encode text for an HTTP response header.

    Header values must be latin-1; transcripts and replies routinely contain
    other characters (and newlines). The encoding matches JavaScript's
    `encodeURIComponent`, so browser clients decode it with `decodeURIComponent`.
    """
    return quote(value or "", safe=_URI_COMPONENT_SAFE)


def decode_header_value(value: Optional[str]) -> str:
    """Inverse of `encode_header_value`."""
    return unquote(value or "")


def truncate_message_for_logging(message: str, max_length: int = 100) -> str:
    """
    Truncate long messages for logging purposes.

    Args:
        message (str): Message to truncate
        max_length (int): Maximum length before truncation (default: 100)

    Returns:
        str: Truncated message with ellipsis if needed
    """
    if message is None:
        return ""
    if len(message) <= max_length:
        return message
    return message[:max_length] + "..."


def generate_interaction_id() -> str:
    """
    Generate a unique interaction ID using UUID4.

    One id is issued per voice request. It is returned in the X-Interaction-Id
    header and attached to every log record of the request.

    Returns:
        str: A UUID4 string (e.g., "a1b2c3d4-e5f6-7890-abcd-ef1234567890")
    """
    return str(uuid.uuid4())
