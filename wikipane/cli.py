"""Command-line front door for wikipane.

Parses CLI options, registers the wikis to browse, and restores the saved
pane lineup. Then hands the terminal to the interactive session.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path

from .browser import open_in_browser
from .config import LOCAL_WIKI_ROOT, SessionSnapshot, load_session, save_session
from .ex import ExEditor
from .input import read_key
from .session import END, Session
from .store import ContentSource, LocalSource, RemoteSource, WikiError, name_for_url, source_from_location
from .surface import TerminalSurface
from .terminal import TerminalController
from .wrap import wrap_items

logger = logging.getLogger(__name__)

DEFAULT_PAGE = "welcome-visitors"
INPUT_POLL_MS = 250
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _terminal_size() -> tuple[int, int]:
    term = shutil.get_terminal_size((80, 24))
    return term.columns, term.lines


def configure_logging(log_file: Path | None, verbose: bool = False) -> None:
    """Send logs to ``log_file``; without one the session stays silent."""
    if log_file is None:
        return
    logging.basicConfig(
        filename=str(log_file),
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def local_wiki_path(name: str, root: Path | None = None) -> Path:
    """Resolve a local wiki name; ``localhost`` is the wiki root itself."""
    if root is None:
        root = LOCAL_WIKI_ROOT
    if not root.exists():
        raise SystemExit(f"{root} does not exist!")
    path = root if name == "localhost" else root / name
    if not path.exists():
        raise SystemExit(f"{path} does not exist!")
    return path


def build_sources(
    snapshot: SessionSnapshot,
    local: str | None,
    url: str | None,
) -> tuple[dict[str, ContentSource], str | None]:
    """Rebuild saved wikis and add the one named on the command line.

    Returns the sources by collection name and the collection to open first,
    if the command line named one.
    """
    sources: dict[str, ContentSource] = {}
    for name, wiki in snapshot.wikis.items():
        try:
            sources[name] = source_from_location(wiki.kind, wiki.location)
        except ValueError as exc:
            logger.warning("dropping saved wiki %s: %s", name, exc)

    target: str | None = None
    if local is not None:
        sources[local] = LocalSource(local_wiki_path(local))
        target = local
    elif url is not None:
        try:
            target = name_for_url(url)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc
        sources[target] = RemoteSource(url)
    elif not sources:
        raise SystemExit("Must pass in at least one of: --url or --local")
    return sources, target


def dump_page(source: ContentSource, slug: str, columns: int) -> str:
    """Return the wrapped text of one page as plain lines."""
    page = source.fetch(slug)
    return "".join(f"{line.text}\n" for line in wrap_items(page.story, columns))


def _close_sources(sources: dict[str, ContentSource]) -> None:
    for source in sources.values():
        if isinstance(source, RemoteSource):
            source.close()


def main() -> None:
    """Parse CLI arguments and launch the wiki browser."""
    parser = argparse.ArgumentParser(description="Browse federated wiki pages in the terminal.")
    wiki_group = parser.add_mutually_exclusive_group()
    wiki_group.add_argument("--url", help="Remote wiki URL to browse.")
    wiki_group.add_argument("--local", metavar="NAME", help="Local wiki under ~/.wiki ('localhost' for ~/.wiki).")
    parser.add_argument("--page", default=DEFAULT_PAGE, help=f"Page slug to open first (default: {DEFAULT_PAGE}).")
    parser.add_argument("--dump", action="store_true", help="Print the wrapped page and exit.")
    parser.add_argument(
        "--max-cols",
        type=_positive_int,
        default=None,
        help="Column width for --dump output (default: terminal width).",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to this file.")
    parser.add_argument("--verbose", action="store_true", help="Log debug detail (with --log-file).")
    args = parser.parse_args()

    configure_logging(args.log_file, args.verbose)
    snapshot = load_session()
    sources, target = build_sources(snapshot, args.local, args.url)

    try:
        if args.dump:
            if target is None:
                raise SystemExit("--dump needs --url or --local")
            columns = args.max_cols if args.max_cols is not None else _terminal_size()[0]
            try:
                sys.stdout.write(dump_page(sources[target], args.page, columns))
            except WikiError as exc:
                raise SystemExit(str(exc)) from exc
            return
        _run_interactive(sources, target, args.page, snapshot)
    finally:
        _close_sources(sources)


def _run_interactive(
    sources: dict[str, ContentSource],
    target: str | None,
    page: str,
    snapshot: SessionSnapshot,
) -> None:
    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    terminal = TerminalController(stdin_fd, stdout_fd)

    def open_url(url: str) -> str | None:
        with terminal.suspended():
            return open_in_browser(url)

    session = Session(
        sources,
        _terminal_size(),
        TerminalSurface(stdout_fd),
        editor=ExEditor(snapshot.history),
        open_url=open_url,
    )
    session.restore(snapshot.panes)
    if target is not None:
        try:
            session.display(target, page, END, render=False)
        except WikiError as exc:
            raise SystemExit(str(exc)) from exc
    if not session.slots:
        raise SystemExit("No saved panes to restore; pass --url or --local")

    with terminal.raw_mode():
        session.run(
            lambda: read_key(stdin_fd, timeout_ms=INPUT_POLL_MS),
            get_size=_terminal_size,
            on_exit=lambda finished: save_session(finished.snapshot()),
        )


if __name__ == "__main__":
    main()
