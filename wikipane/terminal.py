"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle, alternate-screen switching and mouse reporting.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty

_MOUSE_ON = b"\x1b[?1000h\x1b[?1006h"
_MOUSE_OFF = b"\x1b[?1000l\x1b[?1006l"


class TerminalController:
    """Manage terminal mode transitions for the session."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse reporting enabled."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        # Enter alternate screen, hide cursor, enable click + SGR mouse reporting.
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l" + _MOUSE_ON)

    def disable_tui_mode(self) -> None:
        """Restore normal terminal state and disable TUI mouse mode."""
        os.write(self.stdout_fd, _MOUSE_OFF + b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()

    @contextlib.contextmanager
    def suspended(self):
        """Temporarily hand the terminal back, e.g. while a browser launches."""
        self.disable_tui_mode()
        try:
            yield
        finally:
            self.enable_tui_mode()
