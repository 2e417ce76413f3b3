"""Wrap page items into tagged display lines.

Each physical row remembers which story item produced it so pane features
(item highlight, link hops) can map rows back to logical items.
"""

from __future__ import annotations

import textwrap
from collections.abc import Iterable
from dataclasses import dataclass

from .store import ContentItem

ITEM_INDENT = "  "
EMPTY_TEXT = "<empty>"


@dataclass(frozen=True)
class DisplayLine:
    """One terminal row of wrapped text.

    ``logical_index`` is the story item index, or ``None`` for the blank
    separator emitted between items.
    """

    text: str
    logical_index: int | None = None


def _wrap_piece(text: str, width: int) -> list[str]:
    return textwrap.wrap(text, width=max(1, width), drop_whitespace=True) or [""]


def render_item(item: ContentItem, columns: int) -> list[str]:
    """Return the wrapped text rows for one story item."""
    columns = max(1, columns)
    if item.type == "pagefold":
        heading = f" {item.text or ''} "
        return [heading.center(columns, "-")[:columns]]

    rows: list[str] = []
    prefix = ""
    if item.type != "paragraph":
        prefix = ITEM_INDENT
        rows.append(item.type)
    text = item.text if item.text is not None else EMPTY_TEXT
    for piece in text.split("\n"):
        for row in _wrap_piece(piece, columns - len(prefix)):
            rows.append(f"{prefix}{row}")
    return rows


def wrap_items(items: Iterable[ContentItem], columns: int) -> list[DisplayLine]:
    """Wrap ``items`` to ``columns`` and tag every row with its item index."""
    lines: list[DisplayLine] = []
    for index, item in enumerate(items):
        for row in render_item(item, columns):
            lines.append(DisplayLine(row, index))
        lines.append(DisplayLine("", None))
    return lines
