"""Scan the RSS/Atom feeds of active sources for tracked-term matches."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

import feedparser
import httpx
from bs4 import BeautifulSoup
from dateutil import parser as dateparser

from pundit.discovery.matcher import TermMatcher
from pundit.discovery.models import ArticleStub
from pundit.tracking.store import FeedSource

logger = logging.getLogger(__name__)

FEED_TYPES = ("application/rss+xml", "application/atom+xml", "application/feed+json")
_XML_MARKERS = (b"<rss", b"<feed", b"<rdf:RDF")
_UTC_MIN = datetime.min.replace(tzinfo=timezone.utc)


class FeedScanner:
    """Fetch and parse feeds for a list of sources.

    Sources are usually site homepages rather than feed URLs, so the
    scanner looks for a ``<link rel="alternate">`` feed in the page and
    remembers what it found for the lifetime of the scanner.
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        max_per_feed: int = 10,
        max_total: int = 25,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": "pundit feed scanner/0.1"},
            follow_redirects=True,
            transport=transport,
        )
        self._max_per_feed = max_per_feed
        self._max_total = max_total
        self._feed_urls: dict[str, str] = {}

    def scan(self, sources: Iterable[FeedSource], terms: Iterable[str]) -> list[ArticleStub]:
        """Return matching entries from every active source, newest first.

        A source that fails to load is logged and skipped.
        """
        matcher = TermMatcher(terms)
        stubs: list[ArticleStub] = []

        for source in sources:
            if not source.active:
                continue
            try:
                entries = self.fetch_source(source)
            except httpx.HTTPError as exc:
                logger.warning("skipping %s: %s", source.url, exc)
                continue

            for stub in entries:
                matched = matcher.match(stub.title, stub.summary)
                if matched:
                    stubs.append(stub.model_copy(update={"matched_keywords": matched}))

        stubs.sort(key=lambda s: s.published_at or _UTC_MIN, reverse=True)
        return stubs[: self._max_total]

    def fetch_source(self, source: FeedSource) -> list[ArticleStub]:
        """Parse the feed behind ``source`` into unmatched stubs."""
        feed_url = self._feed_urls.get(source.url, source.url)
        resp = self._client.get(feed_url)
        resp.raise_for_status()

        if not self._looks_like_feed(resp):
            discovered = self.discover_feed_url(resp.text, str(resp.url))
            if discovered is None:
                logger.info("no feed advertised at %s", source.url)
                return []
            resp = self._client.get(discovered)
            resp.raise_for_status()
            feed_url = discovered

        self._feed_urls[source.url] = feed_url
        return self.parse_feed(resp.content, source)

    def parse_feed(self, content: bytes, source: FeedSource) -> list[ArticleStub]:
        feed = feedparser.parse(content)
        if feed.bozo and not feed.entries:
            logger.warning("unreadable feed for %s: %s", source.url, feed.get("bozo_exception"))
            return []

        stubs: list[ArticleStub] = []
        for entry in feed.entries[: self._max_per_feed]:
            link = entry.get("link", "")
            if not link:
                continue
            summary_raw = entry.get("summary", "")
            summary = BeautifulSoup(summary_raw, "html.parser").get_text(" ", strip=True)[:500]
            stubs.append(
                ArticleStub(
                    title=entry.get("title", "Untitled").strip(),
                    summary=summary,
                    link=link,
                    source_name=source.name,
                    published_at=self._parse_date(
                        entry.get("published") or entry.get("updated")
                    ),
                )
            )
        return stubs

    @staticmethod
    def discover_feed_url(html: str, base_url: str) -> str | None:
        """Find the first advertised feed link in an HTML page."""
        soup = BeautifulSoup(html, "html.parser")
        for link in soup.find_all("link", href=True):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if "alternate" in rel and link.get("type", "").lower() in FEED_TYPES:
                return str(httpx.URL(base_url).join(link["href"]))
        return None

    @staticmethod
    def _looks_like_feed(resp: httpx.Response) -> bool:
        content_type = resp.headers.get("content-type", "").lower()
        if "xml" in content_type or "rss" in content_type or "atom" in content_type:
            return True
        head = resp.content[:512].lstrip()
        return any(marker in head for marker in _XML_MARKERS)

    @staticmethod
    def _parse_date(date_str: str | None) -> datetime | None:
        if not date_str:
            return None
        try:
            parsed = dateparser.parse(date_str)
        except (ValueError, TypeError, OverflowError):
            return None
        if parsed is not None and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def close(self) -> None:
        self._client.close()
