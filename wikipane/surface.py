"""Render surface over the controlling terminal.

Drawing calls are queued as ANSI sequences and written with a single
``os.write`` per ``flush`` so one event's redraw reaches the tty as one frame.
Coordinates are zero-based ``(col, row)``.
"""

from __future__ import annotations

import os


class TerminalSurface:
    """Queue cursor, clear, scroll, and text commands for one output fd."""

    def __init__(self, stdout_fd: int) -> None:
        self.stdout_fd = stdout_fd
        self._pending: list[str] = []

    def move_to(self, col: int, row: int) -> None:
        self._pending.append(f"\x1b[{max(0, row) + 1};{max(0, col) + 1}H")

    def clear_line(self) -> None:
        self._pending.append("\x1b[2K")

    def clear_all(self) -> None:
        self._pending.append("\x1b[2J")

    def scroll_up(self, n: int = 1) -> None:
        """Shift screen contents up ``n`` rows, exposing blank rows at the bottom."""
        if n > 0:
            self._pending.append(f"\x1b[{n}S")

    def scroll_down(self, n: int = 1) -> None:
        """Shift screen contents down ``n`` rows, exposing blank rows at the top."""
        if n > 0:
            self._pending.append(f"\x1b[{n}T")

    def write(self, text: str) -> None:
        if text:
            self._pending.append(text)

    def show_cursor(self) -> None:
        self._pending.append("\x1b[?25h")

    def hide_cursor(self) -> None:
        self._pending.append("\x1b[?25l")

    def flush(self) -> None:
        """Write every queued command at once.

        ``OSError`` from the write propagates; a failed flush is fatal to the
        session.
        """
        if not self._pending:
            return
        payload = "".join(self._pending).encode("utf-8")
        self._pending.clear()
        view = memoryview(payload)
        while view:
            written = os.write(self.stdout_fd, view)
            view = view[written:]
