"""Article lifecycle: Inbox/Archive membership and generation status.

The controller is the only writer of both collections and of each
article's ``processing_status`` and ``result``. Articles are treated as
immutable values: every change swaps in an updated copy, and moves
between collections reassign both lists in one step so an observer never
sees an article in neither or both.

Per-article state machine::

    IDLE -> PROCESSING -> COMPLETED | ERROR
    COMPLETED | ERROR -> PROCESSING   (explicit regenerate)
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from pundit.content.generator import build_article_context
from pundit.content.models import ProcessingResult, Tone
from pundit.discovery.models import ArticleStub
from pundit.inbox.models import Article, ArticleView, ProcessingStatus
from pundit.inbox.selection import Selection
from pundit.tracking.store import TrackingStore

logger = logging.getLogger(__name__)

DEFAULT_INBOX_CAP = 100


class ArticleNotFound(KeyError):
    """No article with this id in the collection the operation needs."""


class GenerationInProgress(RuntimeError):
    """A generation request for this article has not resolved yet."""


class DuplicateArticle(ValueError):
    """An article with this link is already tracked."""


class Generator(Protocol):
    def process(
        self, context: str, terms: list[str], article_url: str, tone: Tone
    ) -> ProcessingResult: ...


@dataclass(frozen=True)
class GenerationTicket:
    """Identifies one in-flight generation request."""

    article_id: str
    tone: Tone
    token: int


class ArticleController:
    def __init__(
        self,
        generator: Generator,
        tracking: TrackingStore,
        *,
        inbox_cap: int = DEFAULT_INBOX_CAP,
    ) -> None:
        self._generator = generator
        self._tracking = tracking
        self._inbox_cap = inbox_cap
        self._inbox: list[Article] = []
        self._archive: list[Article] = []
        self._tokens: dict[str, int] = {}
        self._counter = itertools.count(1)
        self._listeners: list[Callable[[], None]] = []
        self.selection = Selection()
        self.focus: str | None = None

    # -- observation ---------------------------------------------------------

    @property
    def inbox(self) -> tuple[Article, ...]:
        return tuple(self._inbox)

    @property
    def archive_items(self) -> tuple[Article, ...]:
        return tuple(self._archive)

    def collection(self, view: ArticleView) -> tuple[Article, ...]:
        if view == ArticleView.INBOX:
            return self.inbox
        if view == ArticleView.ARCHIVE:
            return self.archive_items
        raise ValueError(f"{view.value} is not an article collection")

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener()

    def find(self, article_id: str) -> Article | None:
        for article in itertools.chain(self._inbox, self._archive):
            if article.id == article_id:
                return article
        return None

    def get(self, article_id: str) -> Article:
        article = self.find(article_id)
        if article is None:
            raise ArticleNotFound(article_id)
        return article

    def preferred_tone(self, article_id: str) -> Tone:
        """Tone to pre-select when regenerating: the last one applied."""
        result = self.get(article_id).result
        if result is not None and result.meta.applied_tone is not None:
            return result.meta.applied_tone
        return Tone.AI_CHOICE

    def set_view(self, view: ArticleView) -> None:
        self.selection.set_view(view)
        self.focus = None

    def set_focus(self, article_id: str | None) -> None:
        self.focus = article_id

    # -- loading -------------------------------------------------------------

    def load(self, inbox: Iterable[Article], archive: Iterable[Article]) -> None:
        """Replace both collections with persisted state, without notifying.

        Repairs what a saved snapshot can get wrong: repeated links are
        dropped (the Archive copy wins) and articles saved mid-request come
        back as ERROR since nothing is in flight any more.
        """
        seen: set[str] = set()
        ids: set[str] = set()

        def repaired(articles: Iterable[Article]) -> list[Article]:
            kept = []
            for article in articles:
                if article.link in seen or article.id in ids:
                    continue
                seen.add(article.link)
                ids.add(article.id)
                if article.processing_status == ProcessingStatus.PROCESSING:
                    article = article.model_copy(
                        update={"processing_status": ProcessingStatus.ERROR}
                    )
                kept.append(article)
            return kept

        new_archive = repaired(archive)
        new_inbox = repaired(inbox)[: self._inbox_cap]
        self._inbox, self._archive = new_inbox, new_archive
        self._tokens.clear()
        self.selection.clear()
        self.focus = None

    # -- ingest --------------------------------------------------------------

    def ingest(self, stubs: Iterable[ArticleStub]) -> list[Article]:
        """Merge discovered stubs into the Inbox.

        Stubs whose link is already tracked (or repeats within the batch)
        are dropped. Survivors become IDLE articles prepended to the Inbox
        in batch order; the Inbox is then cut to the cap, oldest out.
        Returns the articles actually added.
        """
        seen = {a.link for a in itertools.chain(self._inbox, self._archive)}
        added: list[Article] = []
        for stub in stubs:
            if stub.link in seen:
                continue
            seen.add(stub.link)
            added.append(Article.from_stub(stub))

        if not added:
            return []

        combined = added + self._inbox
        kept, evicted = combined[: self._inbox_cap], combined[self._inbox_cap :]
        self._inbox = kept
        for article in evicted:
            self._forget(article.id)
        if evicted:
            logger.info("inbox cap %d reached, evicted %d", self._inbox_cap, len(evicted))

        added = added[: self._inbox_cap]
        self._changed()
        return added

    # -- generation ----------------------------------------------------------

    def generate(self, article_id: str, tone: Tone = Tone.AI_CHOICE) -> Article:
        """Draft (or redraft) posts for one article and wait for the result.

        A generator failure leaves the article in ERROR with any previous
        result untouched; it is never retried automatically.
        """
        ticket = self.begin_generation(article_id, tone)
        article = self.get(article_id)
        try:
            result = self._generator.process(
                build_article_context(article.title, article.summary, article.source_name),
                self._tracking.tracked_terms,
                article.link,
                tone,
            )
        except Exception as exc:
            logger.exception("generation failed for %s", article_id)
            self.fail_generation(ticket, exc)
        else:
            self.complete_generation(ticket, result)
        return self.get(article_id)

    def begin_generation(self, article_id: str, tone: Tone) -> GenerationTicket:
        """Mark the article PROCESSING and hand out a ticket for the request."""
        article = self.get(article_id)
        if article.processing_status == ProcessingStatus.PROCESSING:
            raise GenerationInProgress(article_id)

        ticket = GenerationTicket(article_id=article_id, tone=tone, token=next(self._counter))
        self._tokens[article_id] = ticket.token
        self._update(article_id, processing_status=ProcessingStatus.PROCESSING)
        self._changed()
        return ticket

    def complete_generation(
        self, ticket: GenerationTicket, result: ProcessingResult
    ) -> Article | None:
        """Attach a result, replacing any earlier one.

        The result headline, when present, replaces the discovered title:
        it comes from the live page. Returns None if the ticket is stale.
        """
        if not self._is_current(ticket):
            logger.info("discarding stale result for %s", ticket.article_id)
            return None

        update: dict = {"processing_status": ProcessingStatus.COMPLETED, "result": result}
        if result.headline:
            update["title"] = result.headline
        del self._tokens[ticket.article_id]
        article = self._update(ticket.article_id, **update)
        self._changed()
        return article

    def fail_generation(self, ticket: GenerationTicket, error: BaseException) -> Article | None:
        if not self._is_current(ticket):
            logger.info("discarding stale failure for %s", ticket.article_id)
            return None

        del self._tokens[ticket.article_id]
        article = self._update(ticket.article_id, processing_status=ProcessingStatus.ERROR)
        logger.warning("article %s marked ERROR: %s", ticket.article_id, error)
        self._changed()
        return article

    def _is_current(self, ticket: GenerationTicket) -> bool:
        return (
            self._tokens.get(ticket.article_id) == ticket.token
            and self.find(ticket.article_id) is not None
        )

    # -- moves and removals --------------------------------------------------

    def archive(self, article_id: str) -> Article:
        """Move one Inbox article to the head of the Archive."""
        article = next((a for a in self._inbox if a.id == article_id), None)
        if article is None:
            raise ArticleNotFound(article_id)

        self._inbox, self._archive = (
            [a for a in self._inbox if a.id != article_id],
            [article] + self._archive,
        )
        self._prune(article_id)
        self._changed()
        return article

    def delete(self, article_id: str) -> bool:
        """Remove the article from whichever collection holds it."""
        if self.find(article_id) is None:
            return False

        self._inbox, self._archive = (
            [a for a in self._inbox if a.id != article_id],
            [a for a in self._archive if a.id != article_id],
        )
        self._forget(article_id)
        self._changed()
        return True

    def bulk_archive(self, article_ids: Iterable[str]) -> list[Article]:
        """Archive every given id present in the Inbox, keeping Inbox order."""
        wanted = set(article_ids)
        moved = [a for a in self._inbox if a.id in wanted]
        self.selection.clear()
        if not moved:
            return []

        self._inbox, self._archive = (
            [a for a in self._inbox if a.id not in wanted],
            moved + self._archive,
        )
        if self.focus in wanted:
            self.focus = None
        self._changed()
        return moved

    def bulk_delete(self, article_ids: Iterable[str]) -> int:
        wanted = set(article_ids)
        before = len(self._inbox) + len(self._archive)
        self._inbox, self._archive = (
            [a for a in self._inbox if a.id not in wanted],
            [a for a in self._archive if a.id not in wanted],
        )
        removed = before - len(self._inbox) - len(self._archive)
        for article_id in wanted:
            self._forget(article_id)
        self.selection.clear()
        if removed:
            self._changed()
        return removed

    def clear_all(self, scope: ArticleView) -> int:
        """Empty the Inbox or the Archive. Confirmation is the caller's job."""
        if scope == ArticleView.INBOX:
            removed, self._inbox = self._inbox, []
        elif scope == ArticleView.ARCHIVE:
            removed, self._archive = self._archive, []
        else:
            raise ValueError(f"{scope.value} is not an article collection")

        for article in removed:
            self._forget(article.id)
        self.selection.clear()
        if removed:
            self._changed()
        return len(removed)

    def archive_review(self, result: ProcessingResult, url: str, source_name: str) -> Article:
        """File an instant-review result straight into the Archive."""
        if any(a.link == url for a in itertools.chain(self._inbox, self._archive)):
            raise DuplicateArticle(url)

        article = Article(
            title=result.headline or url,
            summary=result.meta.source_topic,
            link=url,
            source_name=source_name,
            processing_status=ProcessingStatus.COMPLETED,
            result=result,
        )
        self._archive = [article] + self._archive
        self._changed()
        return article

    # -- internals -----------------------------------------------------------

    def _update(self, article_id: str, **changes: object) -> Article:
        for collection in (self._inbox, self._archive):
            for i, article in enumerate(collection):
                if article.id == article_id:
                    collection[i] = article.model_copy(update=changes)
                    return collection[i]
        raise ArticleNotFound(article_id)

    def _prune(self, article_id: str) -> None:
        self.selection.discard(article_id)
        if self.focus == article_id:
            self.focus = None

    def _forget(self, article_id: str) -> None:
        self._prune(article_id)
        self._tokens.pop(article_id, None)
