"""
String codec: truncation and escaping of text/binary scalars and keys.

The describer treats these as pure functions. ``truncate_text`` returns the
display form, the true length and whether the value is binary; the describer
keeps a raw ``str`` only when the display form equals the input.
"""

from __future__ import annotations

import re

HIDDEN_VALUE = "*****"
ELLIPSIS = "…"

_SIMPLE_KEY = re.compile(r"[!#$%&()*+,./0-9:;<=>?@A-Z\[\]^_`a-z{|}~-]{1,50}")
_RESERVED_KEYS = frozenset({"true", "false", "none", "null"})
_CONTROL = re.compile(r"[\x00-\x08\x0b-\x1f\x7f\ud800-\udfff]")

# Named escapes for bytes; everything else non-printable becomes \xNN.
_BYTE_ESCAPES = {0x09: "\\t", 0x0A: "\\n", 0x0D: "\\r", 0x5C: "\\\\"}


def _escape_char(match: re.Match[str]) -> str:
    code = ord(match.group())
    return f"\\x{code:02x}" if code < 0x100 else f"\\u{code:04x}"


def escape_str(s: str) -> str:
    """Escape control characters and lone surrogates; keep ``\\n`` and ``\\t``."""
    return _CONTROL.sub(_escape_char, s)


def escape_bytes(data: bytes) -> str:
    """Render bytes as printable ASCII with backslash escapes."""
    parts: list[str] = []
    for b in data:
        if b in _BYTE_ESCAPES:
            parts.append(_BYTE_ESCAPES[b])
        elif 0x20 <= b < 0x7F:
            parts.append(chr(b))
        else:
            parts.append(f"\\x{b:02x}")
    return "".join(parts)


def truncate_text(
    value: str | bytes | bytearray | memoryview, max_length: int
) -> tuple[str, int, bool]:
    """Return ``(display, true_length, is_binary)`` for a text or binary scalar.

    ``max_length`` counts characters for ``str`` and bytes for binary values.
    Truncated values end with an ellipsis.
    """
    if isinstance(value, str):
        length = len(value)
        display = escape_str(value[:max_length])
        return (display + ELLIPSIS if length > max_length else display), length, False

    data = bytes(value)
    length = len(data)
    display = escape_bytes(data[:max_length])
    return (display + ELLIPSIS if length > max_length else display), length, True


def format_key(key: object, max_length: int) -> int | str:
    """Return the display form of a mapping key or sequence index.

    Plain identifiers and ints pass through; other strings are quoted; other
    hashables use their ``repr``.
    """
    if isinstance(key, bool) or not isinstance(key, int | str):
        return truncate_text(repr(key), max_length)[0]
    if isinstance(key, int):
        return key
    if _SIMPLE_KEY.fullmatch(key) and key.lower() not in _RESERVED_KEYS:
        return key
    display = truncate_text(key, max_length)[0].replace("'", "\\'")
    return f"'{display}'"


def hide_value(value: object) -> str:
    """Placeholder text for a redacted value, carrying its type name."""
    return f"{HIDDEN_VALUE} ({type(value).__name__})"


__all__ = [
    "ELLIPSIS",
    "HIDDEN_VALUE",
    "escape_bytes",
    "escape_str",
    "format_key",
    "hide_value",
    "truncate_text",
]
