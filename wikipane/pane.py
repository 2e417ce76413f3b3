"""Viewport engine for one open page.

A pane keeps the canonical wrapped lines, a styled copy used for search and
item highlights, and the scroll offset. Drawing is incremental: scrolling
shifts the terminal contents and repaints only the rows it exposes.

Screen layout for a ``(columns, rows)`` viewport: row 0 is the header,
rows ``1 .. rows - 2`` hold content, and row ``rows - 1`` is the status row.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Protocol

from .ansi import bold_span, centered, item_highlight, reverse
from .wrap import DisplayLine

LINK_OPEN = "[["
LINK_CLOSE = "]]"


class RenderSurface(Protocol):
    def move_to(self, col: int, row: int) -> None: ...

    def clear_line(self) -> None: ...

    def clear_all(self) -> None: ...

    def scroll_up(self, n: int = 1) -> None: ...

    def scroll_down(self, n: int = 1) -> None: ...

    def write(self, text: str) -> None: ...

    def show_cursor(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def flush(self) -> None: ...


@dataclass(frozen=True)
class SearchCursor:
    """Most recent match of ``pattern`` at ``(line, char_offset)``."""

    line: int
    char_offset: int
    pattern: str

    @property
    def end(self) -> int:
        return self.char_offset + len(self.pattern)


class Pane:
    def __init__(
        self,
        lines: Iterable[DisplayLine],
        size: tuple[int, int],
        surface: RenderSurface,
        header: str = "",
    ) -> None:
        self.lines: tuple[DisplayLine, ...] = tuple(lines)
        self.rendered: list[DisplayLine] = list(self.lines)
        self.size = (max(1, size[0]), max(1, size[1]))
        self.surface = surface
        self.header = header
        self.scroll_offset = 0
        self.search: SearchCursor | None = None
        self.highlighted_index: int | None = None

    @property
    def columns(self) -> int:
        return self.size[0]

    @property
    def rows(self) -> int:
        return self.size[1]

    @property
    def content_rows(self) -> int:
        return max(0, self.rows - 2)

    @property
    def status_row(self) -> int:
        return self.rows - 1

    @property
    def max_offset(self) -> int:
        """Largest scroll offset: the last line sits on the bottom content row."""
        total = len(self.lines)
        return max(0, min(total - self.content_rows, total - 1))

    def is_visible(self, index: int) -> bool:
        return self.scroll_offset <= index < self.scroll_offset + self.content_rows

    # Styling -----------------------------------------------------------

    def _styled_text(self, index: int, highlighted: bool | None = None) -> str:
        line = self.lines[index]
        text = line.text
        if self.search is not None and self.search.line == index:
            text = bold_span(text, self.search.char_offset, self.search.end)
        if highlighted is None:
            highlighted = line.logical_index is not None and line.logical_index == self.highlighted_index
        if highlighted:
            text = item_highlight(text, self.columns)
        return text

    def _restyle(self, index: int, highlighted: bool | None = None) -> None:
        self.rendered[index] = replace(self.lines[index], text=self._styled_text(index, highlighted))

    # Drawing -----------------------------------------------------------

    def _queue_header(self) -> None:
        self.surface.move_to(0, 0)
        self.surface.clear_line()
        self.surface.write(reverse(centered(self.header, self.columns)))

    def _queue_content_row(self, row: int) -> None:
        """Repaint content row ``row`` (zero-based within the content area)."""
        self.surface.move_to(0, row + 1)
        self.surface.clear_line()
        index = self.scroll_offset + row
        if index < len(self.rendered):
            self.surface.write(self.rendered[index].text)

    def _queue_line(self, index: int) -> None:
        if self.is_visible(index):
            self._queue_content_row(index - self.scroll_offset)

    def _queue_clear_status(self) -> None:
        if self.status_row > 0:
            self.surface.move_to(0, self.status_row)
            self.surface.clear_line()

    def _queue_render(self) -> None:
        self._queue_header()
        for row in range(self.content_rows):
            self._queue_content_row(row)
        self._queue_clear_status()

    def render(self) -> None:
        """Full redraw: header, every content row, and a cleared status row."""
        self._queue_render()
        self.surface.flush()

    # Scrolling ---------------------------------------------------------

    def _scroll_down(self, n: int) -> bool:
        step = min(n, self.max_offset - self.scroll_offset)
        if step <= 0:
            return False
        self.scroll_offset += step
        if step >= self.content_rows:
            self._queue_render()
            return True
        self.surface.scroll_up(step)
        self._queue_header()
        for row in range(self.content_rows - step, self.content_rows):
            self._queue_content_row(row)
        self._queue_clear_status()
        return True

    def _scroll_up(self, n: int) -> bool:
        step = min(n, self.scroll_offset)
        if step <= 0:
            return False
        self.scroll_offset -= step
        if step >= self.content_rows:
            self._queue_render()
            return True
        self.surface.scroll_down(step)
        self._queue_header()
        for row in range(step):
            self._queue_content_row(row)
        self._queue_clear_status()
        return True

    def scroll_down(self, n: int = 1) -> bool:
        """Advance the viewport ``n`` lines, repainting only exposed rows.

        Returns ``False`` without drawing once the last line is already on
        the bottom content row.
        """
        moved = self._scroll_down(n)
        if moved:
            self.surface.flush()
        return moved

    def scroll_up(self, n: int = 1) -> bool:
        moved = self._scroll_up(n)
        if moved:
            self.surface.flush()
        return moved

    # Links -------------------------------------------------------------

    def find_link(self, x: int, y: int) -> str | None:
        """Return the ``[[link]]`` target under content-area cell ``(x, y)``."""
        if y < 0 or y >= self.content_rows or x < 0:
            return None
        index = self.scroll_offset + y
        if index >= len(self.lines):
            return None
        text = self.lines[index].text
        if x >= len(text):
            return None
        start = text.rfind(LINK_OPEN, 0, x + len(LINK_OPEN))
        if start < 0:
            return None
        end = text.find(LINK_CLOSE, start + len(LINK_OPEN))
        if end < 0 or x >= end + len(LINK_CLOSE):
            return None
        return text[start + len(LINK_OPEN):end]

    # Search ------------------------------------------------------------

    def _find_from(self, pattern: str, start_line: int) -> SearchCursor | None:
        for index in range(max(0, start_line), len(self.lines)):
            offset = self.lines[index].text.find(pattern)
            if offset >= 0:
                return SearchCursor(index, offset, pattern)
        return None

    def search_next(self, pattern: str) -> str:
        """Advance the live search for ``pattern`` and report what happened.

        Returns ``"changed"`` when the pattern differs from the live one (the
        old match is cleared and nothing is searched), ``"first"`` or
        ``"next"`` for a found match, and ``"none"`` when no match remains.
        Matching is literal, case-sensitive, and never wraps to the top.
        """
        previous = self.search
        if previous is not None and previous.pattern != pattern:
            self.search = None
            self._restyle(previous.line)
            self._queue_line(previous.line)
            self.surface.flush()
            return "changed"
        if not pattern:
            return "none"

        if previous is None:
            found = self._find_from(pattern, self.scroll_offset)
            status = "first"
        else:
            offset = self.lines[previous.line].text.find(pattern, previous.end)
            if offset >= 0:
                found = SearchCursor(previous.line, offset, pattern)
            else:
                found = self._find_from(pattern, previous.line + 1)
            status = "next"

        self.search = found
        if previous is not None:
            self._restyle(previous.line)
            self._queue_line(previous.line)
        if found is None:
            self.surface.flush()
            return "none"

        self._restyle(found.line)
        if self.is_visible(found.line):
            self._queue_line(found.line)
        else:
            self.scroll_offset = min(found.line, self.max_offset)
            self._queue_render()
        self.surface.flush()
        return status

    # Item highlight ----------------------------------------------------

    def highlight_span(self, logical_index: int) -> tuple[int, int] | None:
        """Return the first and last display rows of one logical item."""
        first: int | None = None
        last = -1
        for index, line in enumerate(self.lines):
            if line.logical_index == logical_index:
                if first is None:
                    first = index
                last = index
            elif first is not None:
                break
        if first is None:
            return None
        return first, last

    def _queue_span(self, logical_index: int, highlighted: bool | None = None) -> None:
        span = self.highlight_span(logical_index)
        if span is None:
            return
        for index in range(span[0], span[1] + 1):
            self._restyle(index, highlighted)
            self._queue_line(index)

    def highlight_line(self) -> None:
        """Paint the whole span of the highlighted logical item."""
        if self.highlighted_index is None:
            return
        self._queue_span(self.highlighted_index, True)
        self.surface.flush()

    def reset_line(self, index: int) -> None:
        """Restore the span of logical item ``index`` to its unhighlighted text."""
        self._queue_span(index, False)
        self.surface.flush()

    def toggle_item_highlight(self) -> bool:
        """Turn item highlight on at the top visible item, or off.

        Returns whether item highlight is active afterwards.
        """
        if self.highlighted_index is not None:
            current = self.highlighted_index
            self.highlighted_index = None
            self.reset_line(current)
            return False
        for line in self.lines[self.scroll_offset:]:
            if line.logical_index is not None:
                self.highlighted_index = line.logical_index
                self.highlight_line()
                return True
        return False

    def move_highlight(self, step: int) -> bool:
        """Move the item highlight by ``step`` logical items.

        The viewport scrolls by the distance between the old and new items'
        first rows. That distance counts every row the old item wraps to plus
        the blank separator row that follows each item, so stepping past a
        three-row item scrolls four rows.
        """
        if self.highlighted_index is None:
            return False
        old_index = self.highlighted_index
        new_index = old_index + step
        old_span = self.highlight_span(old_index)
        new_span = self.highlight_span(new_index)
        if old_span is None or new_span is None:
            return False

        self.highlighted_index = new_index
        for index in range(old_span[0], old_span[1] + 1):
            self._restyle(index, False)
        for index in range(new_span[0], new_span[1] + 1):
            self._restyle(index, True)

        delta = new_span[0] - old_span[0]
        if delta > 0:
            self._scroll_down(delta)
        elif delta < 0:
            self._scroll_up(-delta)
        for index in (*range(old_span[0], old_span[1] + 1), *range(new_span[0], new_span[1] + 1)):
            self._queue_line(index)
        self.surface.flush()
        return True

    # Content -----------------------------------------------------------

    def replace_lines(self, lines: Iterable[DisplayLine]) -> None:
        """Swap in reloaded content; scroll, search, and highlight reset."""
        self.lines = tuple(lines)
        self.rendered = list(self.lines)
        self.scroll_offset = 0
        self.search = None
        self.highlighted_index = None

    def resize(self, size: tuple[int, int], lines: Iterable[DisplayLine]) -> None:
        """Adopt a new viewport and rewrapped lines, keeping the offset in bounds."""
        self.size = (max(1, size[0]), max(1, size[1]))
        self.lines = tuple(lines)
        self.rendered = list(self.lines)
        self.search = None
        self.highlighted_index = None
        self.scroll_offset = min(self.scroll_offset, self.max_offset)
