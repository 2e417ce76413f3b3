"""Content sources that turn a wiki slug into a parsed page.

Two sources exist: a local directory of page JSON files and a remote wiki
reached over HTTP. The session only sees the ``ContentSource`` surface and
never branches on which one it holds.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)

LOCAL_KIND = "local"
REMOTE_KIND = "remote"
DEFAULT_TIMEOUT_SECONDS = 15.0
SESSION_COOKIE = "wikiTlsSession"


class WikiError(Exception):
    """Base error for content and collaborator failures."""


class ContentNotFound(WikiError):
    """The requested collection or page does not exist."""


class ContentError(WikiError):
    """A page could not be fetched or decoded."""


class CollaboratorError(WikiError):
    """A delegated operation (login, password, web) failed."""


@dataclass(frozen=True)
class ContentItem:
    id: str
    type: str
    text: str | None = None


@dataclass(frozen=True)
class Page:
    title: str
    story: tuple[ContentItem, ...]

    @classmethod
    def from_json(cls, data: object) -> Page:
        """Build a page from decoded page JSON.

        Story entries without a string ``type`` are rejected; a missing
        ``text`` is kept as ``None`` so the wrapper can mark it empty.
        """
        if not isinstance(data, dict):
            raise ContentError("page document is not a JSON object")
        title = data.get("title")
        story = data.get("story", [])
        if not isinstance(title, str):
            raise ContentError("page has no title")
        if not isinstance(story, list):
            raise ContentError("page story is not a list")

        items: list[ContentItem] = []
        for raw in story:
            if not isinstance(raw, dict) or not isinstance(raw.get("type"), str):
                raise ContentError("malformed story item")
            text = raw.get("text")
            items.append(
                ContentItem(
                    id=str(raw.get("id", "")),
                    type=raw["type"],
                    text=text if isinstance(text, str) else None,
                )
            )
        return cls(title=title, story=tuple(items))

    @classmethod
    def from_text(cls, body: str) -> Page:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ContentError(f"invalid page JSON: {exc}") from exc
        return cls.from_json(data)


class ContentSource:
    """Interface shared by local and remote page sources."""

    kind = ""

    def fetch(self, content_id: str, refresh: bool = False) -> Page:
        raise NotImplementedError

    def describe(self) -> str:
        """Return the location string persisted for this source."""
        raise NotImplementedError

    def web_url(self, content_id: str) -> str:
        raise CollaboratorError("Not a remote site!")

    def login(self) -> None:
        raise CollaboratorError("Login not needed for a local site!")

    def set_password(self, value: str) -> None:
        raise CollaboratorError("Not a remote site!")


class LocalSource(ContentSource):
    """Pages stored as ``<root>/pages/<slug>`` JSON files."""

    kind = LOCAL_KIND

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def describe(self) -> str:
        return str(self.root)

    def fetch(self, content_id: str, refresh: bool = False) -> Page:
        if not content_id or "/" in content_id or content_id in {".", ".."}:
            raise ContentNotFound(f"page not found: {content_id}")
        path = self.root / "pages" / content_id
        logger.debug("reading local page %s", path)
        try:
            body = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ContentNotFound(f"page not found: {content_id}") from exc
        except OSError as exc:
            raise ContentError(f"cannot read {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ContentError(f"cannot decode {path}: {exc}") from exc
        return Page.from_text(body)


class RemoteSource(ContentSource):
    """Pages served by a federated wiki at ``<url>/<slug>.json``.

    Response bodies are cached per slug for the lifetime of the source;
    ``refresh=True`` bypasses and replaces the cached body. Login cookies are
    retained by the underlying ``httpx.Client``.
    """

    kind = REMOTE_KIND

    def __init__(self, url: str, client: httpx.Client | None = None) -> None:
        self.url = url.rstrip("/")
        self._client = client if client is not None else httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS)
        self._cache: dict[str, str] = {}
        self._password: str | None = None

    def describe(self) -> str:
        return self.url

    def fetch(self, content_id: str, refresh: bool = False) -> Page:
        if refresh or content_id not in self._cache:
            self._cache[content_id] = self._get_page_body(content_id)
        else:
            logger.debug("cache hit for %s/%s", self.url, content_id)
        return Page.from_text(self._cache[content_id])

    def _get_page_body(self, content_id: str) -> str:
        page_url = f"{self.url}/{content_id}.json"
        logger.debug("fetching %s", page_url)
        try:
            response = self._client.get(page_url)
        except httpx.HTTPError as exc:
            raise ContentError(f"fetch failed: {exc}") from exc
        if response.status_code == 404:
            raise ContentNotFound(f"page not found: {content_id}")
        if response.is_error:
            raise ContentError(f"fetch failed: {response.status_code}")
        return response.text

    def web_url(self, content_id: str) -> str:
        return f"{self.url}/view/{content_id}"

    def set_password(self, value: str) -> None:
        self._password = value

    def login(self) -> None:
        if self._password is None:
            raise CollaboratorError("No password set!")
        try:
            response = self._client.post(f"{self.url}/auth/reclaim", content=self._password)
        except httpx.HTTPError as exc:
            raise CollaboratorError(f"Unable to login: {exc}") from exc
        if response.is_error:
            raise CollaboratorError(f"Unable to login: {response.status_code}")
        logger.info("logged in to %s (session cookie: %s)", self.url, SESSION_COOKIE in self._client.cookies)

    def close(self) -> None:
        self._client.close()


def name_for_url(url: str) -> str:
    """Return the collection name for a remote wiki URL (its host)."""
    host = urlsplit(url).hostname
    if not host:
        raise ValueError(f"No host in url: {url}")
    return host


def source_from_location(kind: str, location: str) -> ContentSource:
    """Rebuild a source from its persisted ``kind`` and ``location``."""
    if kind == LOCAL_KIND:
        return LocalSource(Path(location))
    if kind == REMOTE_KIND:
        return RemoteSource(location)
    raise ValueError(f"unknown source kind: {kind!r}")
