"""Source loading, sanitization, and Pygments colorization of block labels."""

from __future__ import annotations

import re
from pathlib import Path

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
DEFAULT_STYLE = "monokai"
LEXER_NAME = "scheme"

_FORMATTERS: dict[str, TerminalFormatter] = {}
_LEXER = None


def read_text(path: Path) -> str:
    """Read text using tolerant encoding fallback order.

    Attempts UTF-8, UTF-8 with BOM, then latin-1; as a final fallback decodes
    raw bytes with UTF-8 replacement semantics.
    """
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def sanitize_terminal_text(source: str) -> str:
    """Escape control bytes in block text so labels cannot move the cursor or ring the bell."""
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group()):02x}", source)


def _formatter_for_style(style: str) -> TerminalFormatter:
    """Return cached terminal formatter, falling back to the default style."""
    formatter = _FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    try:
        formatter = TerminalFormatter(style=style)
    except ClassNotFound:
        formatter = TerminalFormatter(style=DEFAULT_STYLE)
    _FORMATTERS[style] = formatter
    return formatter


def _lexer():
    global _LEXER
    if _LEXER is None:
        _LEXER = get_lexer_by_name(LEXER_NAME)
    return _LEXER


def colorize_label(text: str, style: str = DEFAULT_STYLE) -> str:
    """Colorize one block label, returning sanitized plain text on failure."""
    clean = sanitize_terminal_text(text)
    if not clean:
        return clean
    try:
        rendered = highlight(clean, _lexer(), _formatter_for_style(style))
    except Exception:
        return clean
    # Pygments always terminates output with a newline.
    if rendered.endswith("\n") and not clean.endswith("\n"):
        rendered = rendered[:-1]
    return rendered
