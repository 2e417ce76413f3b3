"""Persistent JSON session state.

Stores the command history, the registered wikis, and the ordered pane
lineup between runs. All access is defensive: malformed or missing data falls
back to an empty session and write failures are logged, never raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "wikipane"
SESSION_FILENAME = "session.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / SESSION_FILENAME
LOCAL_WIKI_ROOT = Path.home() / ".wiki"
MAX_HISTORY = 500


@dataclass
class WikiLocation:
    kind: str
    location: str


@dataclass
class SessionSnapshot:
    """Fields restored into, and saved from, a running session."""

    history: list[str] = field(default_factory=list)
    wikis: dict[str, WikiLocation] = field(default_factory=dict)
    panes: list[tuple[str, str]] = field(default_factory=list)


def _load_raw() -> dict[str, object]:
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable session file %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_session() -> SessionSnapshot:
    """Load the persisted session, dropping entries with the wrong shape."""
    data = _load_raw()
    snapshot = SessionSnapshot()

    history = data.get("history")
    if isinstance(history, list):
        snapshot.history = [entry for entry in history if isinstance(entry, str) and entry]

    wikis = data.get("wikis")
    if isinstance(wikis, dict):
        for name, raw in wikis.items():
            if not isinstance(name, str) or not isinstance(raw, dict):
                continue
            kind = raw.get("kind")
            location = raw.get("location")
            if isinstance(kind, str) and isinstance(location, str) and location:
                snapshot.wikis[name] = WikiLocation(kind=kind, location=location)

    panes = data.get("panes")
    if isinstance(panes, list):
        for raw in panes:
            if (
                isinstance(raw, list)
                and len(raw) == 2
                and all(isinstance(part, str) and part for part in raw)
            ):
                snapshot.panes.append((raw[0], raw[1]))
    return snapshot


def save_session(snapshot: SessionSnapshot) -> None:
    """Persist ``snapshot`` as pretty-printed JSON.

    History is capped to the most recent ``MAX_HISTORY`` entries.
    """
    data = {
        "history": snapshot.history[-MAX_HISTORY:],
        "wikis": {
            name: {"kind": wiki.kind, "location": wiki.location}
            for name, wiki in snapshot.wikis.items()
        },
        "panes": [[collection, content_id] for collection, content_id in snapshot.panes],
    }
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not save session to %s: %s", CONFIG_PATH, exc)
