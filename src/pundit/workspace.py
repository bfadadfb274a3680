"""Application state for one signed-in user.

Wires the tracking store and the article controller to discovery,
generation and the autosaving document store. Interfaces (the CLI) read
state from here and call its operations; they hold no state of their own.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Protocol

from pundit.content.generator import PostGenerator
from pundit.content.models import OnboardingData, ProcessingResult, Tone
from pundit.discovery.models import ArticleStub
from pundit.identity.accounts import User
from pundit.inbox.lifecycle import ArticleController
from pundit.inbox.models import Article
from pundit.storage.autosave import AutosaveScheduler
from pundit.storage.documents import DocumentStore, Snapshot
from pundit.tracking.store import (
    FeedSource,
    InvalidSourceURL,
    TrackingStore,
    normalize_source_url,
)

logger = logging.getLogger(__name__)


class Discovery(Protocol):
    def scan(self, sources: Iterable[FeedSource], terms: Iterable[str]) -> list[ArticleStub]: ...


class Workspace:
    def __init__(
        self,
        user: User,
        *,
        generator: PostGenerator,
        discovery: Discovery,
        documents: DocumentStore,
        tracking: TrackingStore | None = None,
        inbox_cap: int = 100,
        autosave_delay: float = 3.0,
        onboarded: bool = False,
    ) -> None:
        self.user = user
        self._generator = generator
        self._discovery = discovery
        self._documents = documents
        self.tracking = tracking or TrackingStore.with_defaults()
        self.controller = ArticleController(generator, self.tracking, inbox_cap=inbox_cap)
        self.last_scan_at: datetime | None = None
        self.onboarded = onboarded
        self.autosave = AutosaveScheduler(
            lambda snapshot: documents.write(user.uid, snapshot), autosave_delay
        )
        self.tracking.subscribe(self._changed)
        self.controller.subscribe(self._changed)

    @classmethod
    def open(
        cls,
        user: User,
        *,
        generator: PostGenerator,
        discovery: Discovery,
        documents: DocumentStore,
        inbox_cap: int = 100,
        autosave_delay: float = 3.0,
    ) -> Workspace:
        """Restore the user's saved session, or start one with defaults.

        A user with no saved sources or keywords has not been through
        onboarding yet; nothing is autosaved until they finish or skip it.
        """
        snapshot = documents.read(user.uid)
        tracking = None
        if snapshot is not None and snapshot.is_configured:
            tracking = TrackingStore(snapshot.keywords, snapshot.companies, snapshot.sources)

        workspace = cls(
            user,
            generator=generator,
            discovery=discovery,
            documents=documents,
            tracking=tracking,
            inbox_cap=inbox_cap,
            autosave_delay=autosave_delay,
            onboarded=tracking is not None,
        )
        if snapshot is not None:
            workspace.controller.load(snapshot.inbox, snapshot.archive)
            workspace.last_scan_at = snapshot.last_scan_at
        return workspace

    def snapshot(self) -> Snapshot:
        return Snapshot(
            sources=list(self.tracking.sources),
            keywords=self.tracking.keywords.to_list(),
            companies=self.tracking.companies.to_list(),
            archive=list(self.controller.archive_items),
            inbox=list(self.controller.inbox),
            last_scan_at=self.last_scan_at,
            name=self.user.name,
            email=self.user.email,
        )

    def _changed(self) -> None:
        if self.onboarded:
            self.autosave.schedule(self.snapshot())

    # -- onboarding ----------------------------------------------------------

    def complete_onboarding(self, data: OnboardingData) -> None:
        """Adopt suggested sources and terms, then save right away."""
        sources = []
        for suggestion in data.suggested_sources:
            try:
                url, _ = normalize_source_url(suggestion.url)
            except InvalidSourceURL:
                logger.warning("dropping suggested source with bad URL: %s", suggestion.url)
                continue
            sources.append(FeedSource(name=suggestion.name, url=url))

        self.onboarded = True
        self.tracking.replace_all(data.suggested_keywords, data.suggested_companies, sources)
        self.autosave.flush()

    def skip_onboarding(self) -> None:
        self.onboarded = True
        self._changed()

    # -- discovery -----------------------------------------------------------

    def scan(self) -> list[Article]:
        """Discover new articles from active sources and add them to the Inbox.

        Discovery failures are logged and count as an empty scan.
        """
        try:
            stubs = self._discovery.scan(self.tracking.active_sources, self.tracking.tracked_terms)
        except Exception:
            logger.exception("scan failed")
            stubs = []

        self.last_scan_at = datetime.now(timezone.utc)
        added = self.controller.ingest(stubs)
        if not added:
            # ingest() only notifies on change; the scan time still moved
            self._changed()
        logger.info("scan found %d candidates, %d new", len(stubs), len(added))
        return added

    # -- instant review ------------------------------------------------------

    def review(self, url: str, tone: Tone = Tone.AI_CHOICE) -> ProcessingResult:
        """Draft posts for any URL without adding it to the Inbox."""
        normalized, _ = normalize_source_url(url)
        return self._generator.review_url(normalized, self.tracking.tracked_terms, tone)

    def file_review(self, result: ProcessingResult, url: str) -> Article:
        normalized, host = normalize_source_url(url)
        return self.controller.archive_review(result, normalized, source_name=host)

    @property
    def usage_summary(self) -> dict:
        """Tokens spent by this workspace's model calls so far."""
        return self._generator.usage_summary

    def close(self) -> None:
        """Write any pending autosave before the process exits."""
        self.autosave.flush()
