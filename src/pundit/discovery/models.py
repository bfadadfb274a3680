"""Discovery-phase article candidates."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ArticleStub(BaseModel):
    """A discovered article before de-duplication; it has no status yet."""

    title: str
    summary: str = ""
    link: str
    source_name: str
    published_at: datetime | None = None
    matched_keywords: list[str] = Field(default_factory=list)
