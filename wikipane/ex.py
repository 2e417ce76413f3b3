"""Modal single-line command editor with history recall.

The editor is inactive until ``:`` (or a programmatic ``activate``) opens it
on the status row. While history is being browsed the buffer stays
untouched; editing a recalled entry copies it into the buffer first.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .pane import RenderSurface

ACTIVATE_KEY = ":"
SUBMIT_KEYS = frozenset({"ENTER_CR", "ENTER_LF"})
PROMPT = ":"


@dataclass(frozen=True)
class ExKeyResult:
    """Outcome of one key: whether it was consumed, and a submitted command."""

    handled: bool
    command: str | None = None


class ExEditor:
    def __init__(self, history: Iterable[str] = ()) -> None:
        self.active = False
        self.buffer = ""
        self.cursor_offset = 0
        self.history: list[str] = []
        for entry in history:
            self._append_history(entry)
        self.history_cursor: int | None = None
        self.last_result = ""

    @property
    def browsing(self) -> bool:
        return self.history_cursor is not None

    @property
    def text(self) -> str:
        """Text currently shown after the prompt."""
        if self.history_cursor is not None:
            return self.history[self.history_cursor]
        return self.buffer

    def _append_history(self, command: str) -> None:
        if not command:
            return
        if self.history and self.history[-1] == command:
            return
        self.history.append(command)

    def _reset_line(self) -> None:
        self.buffer = ""
        self.cursor_offset = 0
        self.history_cursor = None

    def _fork_history(self) -> None:
        """Turn the browsed entry into a live buffer before it is edited."""
        if self.history_cursor is None:
            return
        self.buffer = self.history[self.history_cursor]
        self.history_cursor = None
        self.cursor_offset = min(self.cursor_offset, len(self.buffer))

    def activate(self, prefill: str = "") -> None:
        self.active = True
        self.history_cursor = None
        self.buffer = f"{prefill} " if prefill else ""
        self.cursor_offset = len(self.buffer)

    def cancel(self) -> None:
        self.active = False
        self._reset_line()

    def set_result(self, text: str) -> None:
        self.last_result = text

    def _submit(self) -> ExKeyResult:
        if self.history_cursor is not None:
            command = self.history.pop(self.history_cursor)
            self.history_cursor = None
        else:
            command = self.buffer
        if not command.strip():
            return ExKeyResult(handled=True)
        self.active = False
        self._reset_line()
        self._append_history(command)
        return ExKeyResult(handled=True, command=command)

    def _recall_older(self) -> None:
        if not self.history:
            return
        if self.history_cursor is None:
            if self.buffer:
                return
            self.history_cursor = len(self.history) - 1
        else:
            self.history_cursor = max(0, self.history_cursor - 1)
        self.cursor_offset = len(self.history[self.history_cursor])

    def _recall_newer(self) -> None:
        if self.history_cursor is None:
            return
        if self.history_cursor >= len(self.history) - 1:
            self._reset_line()
            return
        self.history_cursor += 1
        self.cursor_offset = len(self.history[self.history_cursor])

    def _backspace(self) -> None:
        self._fork_history()
        if not self.buffer:
            self.active = False
            self._reset_line()
            return
        if self.cursor_offset == 0:
            return
        before = self.buffer[: self.cursor_offset - 1]
        after = self.buffer[self.cursor_offset:]
        self.buffer = before + after
        self.cursor_offset -= 1

    def _insert(self, ch: str) -> None:
        self._fork_history()
        self.buffer = self.buffer[: self.cursor_offset] + ch + self.buffer[self.cursor_offset:]
        self.cursor_offset += 1

    def handle_key(self, key: str) -> ExKeyResult:
        """Apply one key token.

        While inactive only ``:`` is consumed. While active every key is
        consumed; unknown keys are ignored so they never reach navigation.
        """
        if not self.active:
            if key == ACTIVATE_KEY:
                self.activate()
                return ExKeyResult(handled=True)
            return ExKeyResult(handled=False)

        if key == "ESC":
            self.cancel()
        elif key in SUBMIT_KEYS:
            return self._submit()
        elif key == "HOME":
            self.cursor_offset = 0
        elif key == "END":
            self.cursor_offset = max(len(self.text) - 1, 0)
        elif key == "LEFT":
            self.cursor_offset = max(self.cursor_offset - 1, 0)
        elif key == "RIGHT":
            self.cursor_offset = min(self.cursor_offset + 1, len(self.text))
        elif key == "UP":
            self._recall_older()
        elif key == "DOWN":
            self._recall_newer()
        elif key == "BACKSPACE":
            self._backspace()
        elif len(key) == 1 and key.isprintable():
            self._insert(key)
        return ExKeyResult(handled=True)

    def render(self, surface: RenderSurface, row: int) -> None:
        """Draw the status row: the live prompt, or the last one-shot result."""
        surface.move_to(0, row)
        surface.clear_line()
        if self.active:
            surface.write(f"{PROMPT}{self.text}")
            surface.move_to(self.cursor_offset + len(PROMPT), row)
            surface.show_cursor()
        else:
            surface.hide_cursor()
            surface.write(self.last_result)
            self.last_result = ""
        surface.flush()
