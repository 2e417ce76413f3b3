"""SGR styling helpers for pane rows.

Styles are applied as inline escape sequences on top of plain text so the
canonical line buffer never carries them.
"""

from __future__ import annotations

import re

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
NORMAL_INTENSITY = "\x1b[22m"
REVERSE = "\x1b[7m"
ITEM_HIGHLIGHT = "\x1b[48;5;238m"


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def reverse(text: str) -> str:
    return f"{REVERSE}{text}{RESET}"


def bold_span(text: str, start: int, end: int) -> str:
    """Embolden ``text[start:end]`` without resetting surrounding styles."""
    if start >= end:
        return text
    return f"{text[:start]}{BOLD}{text[start:end]}{NORMAL_INTENSITY}{text[end:]}"


def item_highlight(text: str, width: int) -> str:
    """Paint a whole row with the item-highlight background.

    The row is padded to ``width`` so the highlight reads as a block even for
    short wrapped lines.
    """
    visible = len(strip_ansi(text))
    padding = " " * max(0, width - visible)
    return f"{ITEM_HIGHLIGHT}{text}{padding}{RESET}"


def centered(text: str, width: int) -> str:
    """Center ``text`` in ``width`` columns, clipping when it does not fit."""
    if width <= 0:
        return ""
    if len(text) >= width:
        return text[:width]
    return text.center(width)
