"""Article records tracked in the Inbox and the Archive."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from pundit.content.models import ProcessingResult
from pundit.discovery.models import ArticleStub


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class ArticleView(str, Enum):
    """Screens that scope a bulk selection."""

    INBOX = "INBOX"
    ARCHIVE = "ARCHIVE"
    SOURCES = "SOURCES"
    KEYWORDS = "KEYWORDS"
    COMPANIES = "COMPANIES"
    INSTANT_REVIEW = "INSTANT_REVIEW"


def new_article_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(BaseModel):
    id: str = Field(default_factory=new_article_id)
    title: str
    summary: str = ""
    link: str
    source_name: str
    published_at: datetime = Field(default_factory=utcnow)
    matched_keywords: list[str] = Field(default_factory=list)
    processing_status: ProcessingStatus = ProcessingStatus.IDLE
    result: ProcessingResult | None = None

    @classmethod
    def from_stub(cls, stub: ArticleStub) -> Article:
        return cls(
            title=stub.title,
            summary=stub.summary,
            link=stub.link,
            source_name=stub.source_name,
            published_at=stub.published_at or utcnow(),
            matched_keywords=list(stub.matched_keywords),
        )
