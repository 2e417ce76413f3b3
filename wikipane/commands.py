"""Ex command-line parsing and dispatch outcomes."""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass

RAN = "ran"
IGNORED = "ignored"
FAILED = "failed"

_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DROP_RE = re.compile(r"[^A-Za-z0-9-]")


@dataclass(frozen=True)
class CommandOutcome:
    """Result of one submitted command line.

    ``status`` is ``"ran"``, ``"ignored"`` (malformed, unknown, or wrong
    arity; no message), or ``"failed"`` (``message`` holds the status text).
    """

    status: str
    message: str = ""


def split_command(line: str) -> list[str] | None:
    """Tokenize a command line with shell quoting; ``None`` when unparseable."""
    try:
        return shlex.split(line)
    except ValueError:
        return None


def slugify(title: str) -> str:
    """Convert a link title into the page slug it refers to."""
    dashed = _SLUG_SPACE_RE.sub("-", title.strip())
    return _SLUG_DROP_RE.sub("", dashed).lower()
