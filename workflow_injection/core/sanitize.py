"""Escaping and sanitizing of business values before they enter a workflow."""
from __future__ import annotations

import re
import unicodedata
from typing import Any

_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F-\x9F]")
# Control characters without a JSON short escape.
_UNESCAPABLE_CONTROL_CHARS = re.compile(r"[\x00-\x07\x0B\x0E-\x1F\x7F-\x9F]")
_ZERO_WIDTH = re.compile(r"[\u200B-\u200D\uFEFF]")
_WHITESPACE = re.compile(r"\s+")
_DELIMITER_RUN = re.compile(r"<{3,}|>{3,}")
_DISPLAY_DISALLOWED = re.compile(r"[^\w\s.,()\-:/+#@]")

_JSON_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
    ("\b", "\\b"),
    ("\f", "\\f"),
)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def neutralize_tokens(value: Any) -> str:
    """Collapse runs of token delimiters so a value can never introduce a token."""
    return _DELIMITER_RUN.sub(lambda match: match.group(0)[:2], _to_text(value))


def strip_control_characters(value: Any) -> str:
    """Drop the control characters JSON cannot express with a short escape."""
    return _UNESCAPABLE_CONTROL_CHARS.sub("", _to_text(value))


def escape_json_string(value: Any) -> str:
    """Escape a value for embedding inside a JSON string literal.

    Backslash goes first so later escapes are not doubled. Control characters
    without a short escape are removed rather than encoded.
    """
    text = _to_text(value)
    for raw, escaped in _JSON_ESCAPES:
        text = text.replace(raw, escaped)
    return _UNESCAPABLE_CONTROL_CHARS.sub("", text)


def sanitize_text(value: Any, default: str = "") -> str:
    """Single-line cleanup for identity fields such as names, phones and domains.

    Tabs and line breaks become spaces before the other control characters
    are dropped.
    """
    text = unicodedata.normalize("NFKC", _to_text(value))
    text = _ZERO_WIDTH.sub("", text)
    text = _CONTROL_CHARS.sub("", _WHITESPACE.sub(" ", text))
    text = _WHITESPACE.sub(" ", text).strip()
    return text or default


def sanitize_display_name(value: Any, default: str = "Untitled Workflow") -> str:
    """Plain-text cleanup for the workflow's own name.

    Whitespace is collapsed before punctuation is removed, so gaps left by
    removed characters are kept as they are.
    """
    text = _DISPLAY_DISALLOWED.sub("", sanitize_text(value)).strip()
    return text or default
