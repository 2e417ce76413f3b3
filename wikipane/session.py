"""Multi-pane session coordinator and event loop.

The session owns the ordered pane lineup, the active index, and the ex
editor. Input tokens are routed to the editor first (while it is active),
then to mouse link resolution, then to navigation keys; an unbound key ends
the loop. Submitted command lines and clicked links share one dispatcher.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from .browser import open_in_browser
from .commands import FAILED, IGNORED, RAN, CommandOutcome, slugify, split_command
from .config import SessionSnapshot, WikiLocation
from .ex import ExEditor
from .pane import Pane, RenderSurface
from .store import ContentItem, ContentNotFound, ContentSource, WikiError
from .wrap import wrap_items

logger = logging.getLogger(__name__)

REPLACE = "replace"
NEXT = "next"
END = "end"
PLACEMENTS = (REPLACE, NEXT, END)

DEFAULT_SEARCH_PATTERN = "[["
WHEEL_SCROLL_ROWS = 3


@dataclass(frozen=True)
class Origin:
    """Which collection and page a pane shows, and the source kind it came from."""

    kind: str
    collection: str
    content_id: str


@dataclass
class PaneSlot:
    pane: Pane
    origin: Origin
    items: tuple[ContentItem, ...]


def _parse_mouse(token: str) -> tuple[str, int, int] | None:
    parts = token.split(":")
    if len(parts) != 3:
        return None
    try:
        return parts[0], int(parts[1]), int(parts[2])
    except ValueError:
        return None


class Session:
    def __init__(
        self,
        sources: Mapping[str, ContentSource],
        size: tuple[int, int],
        surface: RenderSurface,
        editor: ExEditor | None = None,
        open_url: Callable[[str], str | None] = open_in_browser,
    ) -> None:
        self.sources: dict[str, ContentSource] = dict(sources)
        self.size = size
        self.surface = surface
        self.editor = editor if editor is not None else ExEditor()
        self.open_url = open_url
        self.slots: list[PaneSlot] = []
        self.active_index = 0
        self.search_pattern = DEFAULT_SEARCH_PATTERN
        self._commands: dict[str, Callable[[list[str]], CommandOutcome]] = {
            "open": self._cmd_open,
            "close": self._cmd_close,
            "reload": self._cmd_reload,
            "web": self._cmd_web,
            "login": self._cmd_login,
            "password": self._cmd_password,
            "find": self._cmd_find,
        }
        self._keys: dict[str, Callable[[], None]] = {
            "UP": lambda: self._step(-1),
            "DOWN": lambda: self._step(1),
            "PAGE_UP": lambda: self._scroll(-self._page_rows()),
            "PAGE_DOWN": lambda: self._scroll(self._page_rows()),
            "LEFT": self.previous_pane,
            "RIGHT": self.next_pane,
            "o": lambda: self._open_editor("open"),
            "x": lambda: self._run_and_report("close"),
            "n": self._search_next,
            "e": self._toggle_item_highlight,
        }

    # Lineup ------------------------------------------------------------

    @property
    def panes(self) -> list[Pane]:
        return [slot.pane for slot in self.slots]

    @property
    def active_slot(self) -> PaneSlot | None:
        if not self.slots:
            return None
        return self.slots[self.active_index]

    @property
    def active_pane(self) -> Pane | None:
        slot = self.active_slot
        return slot.pane if slot is not None else None

    @property
    def status_row(self) -> int:
        return max(0, self.size[1] - 1)

    def lineup(self) -> str:
        """One mark per open pane: ``*`` for the active one, ``-`` elsewhere."""
        return "".join("*" if index == self.active_index else "-" for index in range(len(self.slots)))

    def header_for(self, index: int) -> str:
        origin = self.slots[index].origin
        return f"{origin.kind}: {origin.collection} -- {origin.content_id} |{self.lineup()}|"

    def render_status(self) -> None:
        self.editor.render(self.surface, self.status_row)

    def show_active(self) -> None:
        """Full redraw of the active pane followed by the status row."""
        slot = self.active_slot
        if slot is None:
            self.surface.clear_all()
        else:
            slot.pane.header = self.header_for(self.active_index)
            slot.pane.render()
        self.render_status()

    def display(
        self,
        collection: str,
        content_id: str,
        placement: str = NEXT,
        truncate: bool = False,
        render: bool = True,
    ) -> None:
        """Fetch ``content_id`` from ``collection`` and place it in the lineup.

        ``replace`` swaps the active pane, ``next`` inserts after it (dropping
        every pane to its right first when ``truncate`` is set), and ``end``
        appends. With no panes open every placement appends. The new pane
        becomes active. Fetch errors propagate and leave the lineup unchanged.
        """
        if placement not in PLACEMENTS:
            raise ValueError(f"unknown placement: {placement!r}")
        source = self.sources.get(collection)
        if source is None:
            raise ContentNotFound(f"wiki not found: {collection}")
        page = source.fetch(content_id)
        pane = Pane(wrap_items(page.story, self.size[0]), self.size, self.surface)
        slot = PaneSlot(pane, Origin(source.kind, collection, content_id), page.story)

        if not self.slots or placement == END:
            self.slots.append(slot)
            self.active_index = len(self.slots) - 1
        elif placement == REPLACE:
            self.slots[self.active_index] = slot
        else:
            if truncate:
                del self.slots[self.active_index + 1:]
            self.slots.insert(self.active_index + 1, slot)
            self.active_index += 1
        logger.debug("displaying %s/%s (%s), %d panes", collection, content_id, placement, len(self.slots))
        if render:
            self.show_active()

    def previous_pane(self) -> bool:
        if self.active_index <= 0:
            return False
        self.active_index -= 1
        self.show_active()
        return True

    def next_pane(self) -> bool:
        if self.active_index >= len(self.slots) - 1:
            return False
        self.active_index += 1
        self.show_active()
        return True

    def close_pane(self) -> bool:
        """Close the active pane unless it is the last one."""
        if len(self.slots) <= 1:
            return False
        del self.slots[self.active_index]
        self.active_index = min(self.active_index, len(self.slots) - 1)
        self.show_active()
        return True

    def reload(self) -> None:
        """Refetch the active page, bypassing caches, and reset its pane."""
        slot = self.active_slot
        if slot is None:
            return
        source = self.sources[slot.origin.collection]
        page = source.fetch(slot.origin.content_id, refresh=True)
        slot.items = page.story
        slot.pane.replace_lines(wrap_items(page.story, self.size[0]))
        self.show_active()

    def resize(self, size: tuple[int, int]) -> bool:
        if size == self.size:
            return False
        self.size = size
        for slot in self.slots:
            slot.pane.resize(size, wrap_items(slot.items, size[0]))
        self.show_active()
        return True

    # Commands ----------------------------------------------------------

    def run_command(self, line: str) -> CommandOutcome:
        """Dispatch one ex command line.

        Unparseable quoting, unknown verbs, and wrong arity come back as
        ``ignored`` with no status text. Content and collaborator failures come
        back as ``failed`` and leave their message as the one-shot status.
        """
        tokens = split_command(line)
        if not tokens:
            logger.debug("ignoring unparseable command %r", line)
            return CommandOutcome(IGNORED)
        handler = self._commands.get(tokens[0])
        if handler is None:
            logger.debug("ignoring unknown command %r", tokens[0])
            return CommandOutcome(IGNORED)
        try:
            outcome = handler(tokens[1:])
        except WikiError as exc:
            logger.warning("command %r failed: %s", line, exc)
            outcome = CommandOutcome(FAILED, str(exc))
        if outcome.message:
            self.editor.set_result(outcome.message)
        return outcome

    def _cmd_open(self, args: list[str]) -> CommandOutcome:
        slot = self.active_slot
        if slot is None:
            return CommandOutcome(IGNORED)
        collection = slot.origin.collection
        if len(args) == 1:
            self.display(collection, args[0], NEXT, truncate=True)
        elif len(args) == 2 and args[0] == END:
            self.display(collection, args[1], END)
        else:
            return CommandOutcome(IGNORED)
        return CommandOutcome(RAN)

    def _cmd_close(self, args: list[str]) -> CommandOutcome:
        if args or not self.close_pane():
            return CommandOutcome(IGNORED)
        return CommandOutcome(RAN)

    def _cmd_reload(self, args: list[str]) -> CommandOutcome:
        if args or self.active_slot is None:
            return CommandOutcome(IGNORED)
        self.reload()
        return CommandOutcome(RAN)

    def _active_source(self) -> tuple[ContentSource, Origin] | None:
        slot = self.active_slot
        if slot is None:
            return None
        return self.sources[slot.origin.collection], slot.origin

    def _cmd_web(self, args: list[str]) -> CommandOutcome:
        active = self._active_source()
        if args or active is None:
            return CommandOutcome(IGNORED)
        source, origin = active
        url = source.web_url(origin.content_id)
        error = self.open_url(url)
        if error:
            return CommandOutcome(FAILED, error)
        return CommandOutcome(RAN, f"Opened {url}")

    def _cmd_login(self, args: list[str]) -> CommandOutcome:
        active = self._active_source()
        if args or active is None:
            return CommandOutcome(IGNORED)
        active[0].login()
        return CommandOutcome(RAN, "Logged in")

    def _cmd_password(self, args: list[str]) -> CommandOutcome:
        active = self._active_source()
        if len(args) != 1 or active is None:
            return CommandOutcome(IGNORED)
        active[0].set_password(args[0])
        return CommandOutcome(RAN, "Password set")

    def _cmd_find(self, args: list[str]) -> CommandOutcome:
        pane = self.active_pane
        if len(args) != 1 or not args[0] or pane is None:
            return CommandOutcome(IGNORED)
        self.search_pattern = args[0]
        return CommandOutcome(RAN, pane.search_next(self.search_pattern))

    def _run_and_report(self, line: str) -> None:
        self.run_command(line)
        self.render_status()

    # Keys and mouse ----------------------------------------------------

    def _page_rows(self) -> int:
        pane = self.active_pane
        return max(1, pane.content_rows) if pane is not None else 1

    def _scroll(self, delta: int) -> None:
        pane = self.active_pane
        if pane is None:
            return
        if delta > 0:
            pane.scroll_down(delta)
        else:
            pane.scroll_up(-delta)

    def _step(self, direction: int) -> None:
        pane = self.active_pane
        if pane is None:
            return
        if pane.highlighted_index is not None:
            pane.move_highlight(direction)
        else:
            self._scroll(direction)

    def _open_editor(self, prefill: str) -> None:
        self.editor.activate(prefill)
        self.render_status()

    def _search_next(self) -> None:
        pane = self.active_pane
        if pane is None:
            return
        self.editor.set_result(pane.search_next(self.search_pattern))
        self.render_status()

    def _toggle_item_highlight(self) -> None:
        pane = self.active_pane
        if pane is not None:
            pane.toggle_item_highlight()

    def _handle_mouse(self, token: str) -> None:
        parsed = _parse_mouse(token)
        pane = self.active_pane
        if parsed is None or pane is None:
            return
        kind, col, row = parsed
        if kind == "MOUSE_WHEEL_UP":
            self._scroll(-WHEEL_SCROLL_ROWS)
        elif kind == "MOUSE_WHEEL_DOWN":
            self._scroll(WHEEL_SCROLL_ROWS)
        elif kind == "MOUSE_LEFT_DOWN":
            # One-based terminal cell; content starts below the header row.
            link = pane.find_link(col - 1, row - 2)
            if link is not None:
                self._run_and_report(f"open {slugify(link)}")

    def handle_event(self, token: str) -> bool:
        """Apply one input token; return ``False`` when the session should end."""
        if not token:
            return True
        if self.editor.active:
            result = self.editor.handle_key(token)
            if result.command is not None:
                logger.debug("running command %r", result.command)
                self.run_command(result.command)
            self.render_status()
            return True
        if token.startswith("MOUSE"):
            self._handle_mouse(token)
            return True
        if self.editor.handle_key(token).handled:
            self.render_status()
            return True
        action = self._keys.get(token)
        if action is None:
            logger.debug("unbound key %r ends the session", token)
            return False
        action()
        return True

    # Lifecycle ---------------------------------------------------------

    def restore(self, panes: Sequence[tuple[str, str]]) -> None:
        """Reopen saved panes in order, skipping any that no longer load."""
        for collection, content_id in panes:
            try:
                self.display(collection, content_id, END, render=False)
            except WikiError as exc:
                logger.warning("skipping saved pane %s/%s: %s", collection, content_id, exc)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            history=list(self.editor.history),
            wikis={name: WikiLocation(source.kind, source.describe()) for name, source in self.sources.items()},
            panes=[(slot.origin.collection, slot.origin.content_id) for slot in self.slots],
        )

    def run(
        self,
        read_event: Callable[[], str],
        get_size: Callable[[], tuple[int, int]] | None = None,
        on_exit: Callable[[Session], None] | None = None,
    ) -> None:
        """Process input until an unbound key arrives.

        Read and write failures propagate; ``on_exit`` runs either way so the
        lineup and history can be saved.
        """
        try:
            self.show_active()
            while True:
                if get_size is not None:
                    self.resize(get_size())
                if not self.handle_event(read_event()):
                    break
        finally:
            if on_exit is not None:
                on_exit(self)
