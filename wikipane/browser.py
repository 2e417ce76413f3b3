"""Web-browser launch helper for the ``web`` command.

Returns an error message string instead of raising for UI-friendly handling.
"""

from __future__ import annotations

import webbrowser


def open_in_browser(url: str) -> str | None:
    try:
        opened = webbrowser.open(url)
    except (webbrowser.Error, OSError) as exc:
        return f"Failed to open browser: {exc}"
    if not opened:
        return f"No browser available for {url}"
    return None
