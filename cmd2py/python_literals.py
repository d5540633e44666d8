"""Helpers for turning decoded operand values into Python literals.

Text payloads found in event commands are arbitrary user input: dialogue with
quotes, backslash escape codes understood by the message window (``\\C[2]``,
``\\N[1]``), embedded line breaks in script rows and the occasional control
character.  :func:`escape_python_string` renders any such string as a single
quoted Python literal that evaluates back to exactly the same text.
"""

from __future__ import annotations

from typing import Any, Mapping


_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_LINE_ESCAPES = {key: _SIMPLE_ESCAPES[key] for key in ("\n", "\r", "\t")}


def _escape_char(char: str) -> str:
    codepoint = ord(char)
    if codepoint < 0x20 or codepoint == 0x7F:
        return f"\\x{codepoint:02x}"
    if 0xD800 <= codepoint <= 0xDFFF:
        # Lone surrogates cannot be encoded in a source file.
        return f"\\u{codepoint:04x}"
    if not char.isprintable():
        return f"\\U{codepoint:08x}" if codepoint > 0xFFFF else f"\\u{codepoint:04x}"
    return char


def escape_python_string(text: str) -> str:
    parts = []
    for char in text:
        escaped = _SIMPLE_ESCAPES.get(char)
        parts.append(escaped if escaped is not None else _escape_char(char))
    return "'" + "".join(parts) + "'"


def escape_comment_text(text: str) -> str:
    """Make ``text`` safe to place after ``#`` on a single source line.

    Quotes and backslashes are kept as written; line breaks and every other
    non-printable character are spelled out as escape sequences.
    """

    return "".join(_LINE_ESCAPES.get(char) or _escape_char(char) for char in text)


def format_bool(value: bool) -> str:
    return "True" if value else "False"


def format_number(value: Any) -> str:
    if isinstance(value, bool):
        return format_bool(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def format_value(value: Any) -> str:
    """Render a JSON-compatible value as Python source."""

    if value is None:
        return "None"
    if isinstance(value, str):
        return escape_python_string(value)
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    if isinstance(value, Mapping):
        items = ", ".join(
            f"{format_value(key)}: {format_value(item)}" for key, item in value.items()
        )
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    raise TypeError(f"cannot render {type(value).__name__} as a Python literal")
