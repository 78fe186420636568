"""
Input sanitization for externally supplied text fields
"""

import re
from typing import Any, Dict, Iterable

# Control characters except newlines and tabs
CONTROL_CHARACTERS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
SCRIPT_BLOCKS = re.compile(r'<(script|style)[^>]*>.*?</\1\s*>', re.IGNORECASE | re.DOTALL)
MARKUP_TAGS = re.compile(r'</?[a-zA-Z!/][^>]*>')


def sanitize_text(value: Any) -> Any:
    """
    Strip markup and control sequences from a string and trim it

    Non-string values are returned untouched so the validators can
    report them. This function never rejects input.

    Args:
        value: Raw field value

    Returns:
        Sanitized string, or the original non-string value
    """
    if not isinstance(value, str):
        return value

    sanitized = SCRIPT_BLOCKS.sub('', value)
    sanitized = MARKUP_TAGS.sub('', sanitized)
    sanitized = CONTROL_CHARACTERS.sub('', sanitized)
    return sanitized.strip()


def sanitize_payload(payload: Any, fields: Iterable[str]) -> Any:
    """
    Return a copy of payload with the named fields sanitized

    Args:
        payload: Decoded request body
        fields: Field names to clean

    Returns:
        New dict, or the payload itself when it is not a dict
    """
    if not isinstance(payload, dict):
        return payload

    cleaned: Dict[str, Any] = dict(payload)
    for name in fields:
        if name in cleaned:
            cleaned[name] = sanitize_text(cleaned[name])
    return cleaned
