"""Tracked keywords, companies and feed sources."""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = [
    "AdTech",
    "Programmatic",
    "AI agents",
    "Automation",
    "SaaS",
    "Market Trends",
    "MarTech",
    "B2B",
    "Privacy",
    "Data",
    "OOH",
    "Out-of-Home",
    "Digital Signage",
    "Billboard",
    "Agency News",
    "Brand Strategy",
    "Media Buying",
]

DEFAULT_COMPANIES = [
    "Google",
    "Meta",
    "Amazon",
    "The Trade Desk",
    "JCDecaux",
    "Clear Channel",
    "Lamar Advertising",
]

DEFAULT_SOURCES = [
    ("Billboard Insider", "https://billboardinsider.com"),
    ("OOH Today", "https://oohtoday.com"),
    ("DailyDOOH", "https://dailydooh.com"),
    ("Sixteen:Nine", "https://sixteen-nine.net"),
    ("Digital Signage Today", "https://digitalsignagetoday.com"),
    ("Ad Age", "https://adage.com"),
    ("Adweek", "https://adweek.com"),
    ("The Drum", "https://thedrum.com"),
    ("Digiday", "https://digiday.com"),
    ("AdExchanger", "https://adexchanger.com"),
    ("MarTech", "https://martech.org"),
    ("MediaPost", "https://mediapost.com"),
]


class InvalidSourceURL(ValueError):
    """A manually entered source URL could not be parsed."""


class FeedSource(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    url: str
    active: bool = True


def normalize_source_url(raw: str) -> tuple[str, str]:
    """Return ``(url, display_name)`` for a user-typed source address.

    A missing scheme defaults to https. The display name is the host
    without a leading ``www.``.
    """
    text = raw.strip()
    if not text or any(ch.isspace() for ch in text):
        raise InvalidSourceURL(f"Not a valid URL: {raw!r}")
    if not text.startswith(("http://", "https://")):
        text = f"https://{text}"
    try:
        url = httpx.URL(text)
    except httpx.InvalidURL as exc:
        raise InvalidSourceURL(f"Not a valid URL: {raw!r}") from exc
    host = url.host
    if not host or "." not in host:
        raise InvalidSourceURL(f"Not a valid URL: {raw!r}")
    name = host[4:] if host.startswith("www.") else host
    return str(url), name


class TermList:
    """Ordered, de-duplicated list of tracked strings."""

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: list[str] = []
        for item in items:
            self.add(item)

    def add(self, term: str) -> bool:
        """Append ``term`` unless blank or already present (exact match)."""
        term = term.strip()
        if not term or term in self._items:
            return False
        self._items.append(term)
        return True

    def remove(self, term: str) -> bool:
        if term not in self._items:
            return False
        self._items.remove(term)
        return True

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, term: object) -> bool:
        return term in self._items

    def to_list(self) -> list[str]:
        return list(self._items)


class TrackingStore:
    """Owns the keyword list, the company list and the feed sources.

    Every successful mutation calls the registered listeners with no
    arguments; the workspace uses this to schedule an autosave.
    """

    def __init__(
        self,
        keywords: Iterable[str] = (),
        companies: Iterable[str] = (),
        sources: Iterable[FeedSource] = (),
    ) -> None:
        self.keywords = TermList(keywords)
        self.companies = TermList(companies)
        self._sources: list[FeedSource] = list(sources)
        self._listeners: list[Callable[[], None]] = []

    @classmethod
    def with_defaults(cls) -> TrackingStore:
        return cls(
            keywords=DEFAULT_KEYWORDS,
            companies=DEFAULT_COMPANIES,
            sources=[FeedSource(name=name, url=url) for name, url in DEFAULT_SOURCES],
        )

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener()

    # -- terms ---------------------------------------------------------------

    def add_keyword(self, term: str) -> bool:
        added = self.keywords.add(term)
        if added:
            self._changed()
        return added

    def remove_keyword(self, term: str) -> bool:
        removed = self.keywords.remove(term)
        if removed:
            self._changed()
        return removed

    def add_company(self, name: str) -> bool:
        added = self.companies.add(name)
        if added:
            self._changed()
        return added

    def remove_company(self, name: str) -> bool:
        removed = self.companies.remove(name)
        if removed:
            self._changed()
        return removed

    @property
    def tracked_terms(self) -> list[str]:
        """Keywords followed by companies, as sent to the model."""
        return self.keywords.to_list() + self.companies.to_list()

    # -- sources -------------------------------------------------------------

    @property
    def sources(self) -> tuple[FeedSource, ...]:
        return tuple(self._sources)

    @property
    def active_sources(self) -> list[FeedSource]:
        return [s for s in self._sources if s.active]

    def add_source(self, raw_url: str, name: str | None = None) -> FeedSource:
        """Validate and append a manually entered source.

        Raises InvalidSourceURL before touching any state.
        """
        url, host_name = normalize_source_url(raw_url)
        source = FeedSource(name=name or host_name, url=url)
        self._sources.append(source)
        logger.info("added source %s (%s)", source.name, source.url)
        self._changed()
        return source

    def toggle_source(self, source_id: str) -> FeedSource:
        for i, source in enumerate(self._sources):
            if source.id == source_id:
                updated = source.model_copy(update={"active": not source.active})
                self._sources[i] = updated
                self._changed()
                return updated
        raise KeyError(source_id)

    def remove_source(self, source_id: str) -> bool:
        kept = [s for s in self._sources if s.id != source_id]
        if len(kept) == len(self._sources):
            return False
        self._sources = kept
        self._changed()
        return True

    def replace_all(
        self,
        keywords: Iterable[str],
        companies: Iterable[str],
        sources: Iterable[FeedSource],
    ) -> None:
        """Swap in a whole setup, e.g. accepted onboarding suggestions."""
        self.keywords = TermList(keywords)
        self.companies = TermList(companies)
        self._sources = list(sources)
        self._changed()
