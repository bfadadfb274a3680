"""Discover articles with one search-augmented Claude call."""

from __future__ import annotations

import json
import logging
from typing import Iterable

from pydantic import ValidationError

from pundit.discovery.models import ArticleStub
from pundit.llm.client import ClaudeClient
from pundit.llm.parsing import extract_json
from pundit.llm.prompts import render
from pundit.tracking.store import FeedSource

logger = logging.getLogger(__name__)


class SearchDiscovery:
    """Alternative to FeedScanner for sources that publish no feed."""

    def __init__(self, client: ClaudeClient, *, max_total: int = 25, days: int = 7) -> None:
        self._client = client
        self._max_total = max_total
        self._days = days

    def scan(self, sources: Iterable[FeedSource], terms: Iterable[str]) -> list[ArticleStub]:
        active = [s for s in sources if s.active]
        terms = list(terms)
        if not active or not terms:
            return []

        response = self._client.generate(
            system="You are a news researcher. You only report articles you actually found.",
            messages=[
                {
                    "role": "user",
                    "content": render(
                        "discover_articles.j2",
                        sources=active,
                        terms=terms,
                        limit=self._max_total,
                        days=self._days,
                    ),
                }
            ],
            temperature=0.2,
            web_search=True,
        )

        try:
            items = extract_json(response)
        except json.JSONDecodeError:
            logger.warning("search discovery returned no JSON")
            return []
        if not isinstance(items, list):
            logger.warning("search discovery returned %s, expected a list", type(items).__name__)
            return []

        tracked = set(terms)
        stubs: list[ArticleStub] = []
        for item in items[: self._max_total]:
            try:
                stub = ArticleStub.model_validate(item)
            except ValidationError:
                logger.debug("dropping malformed discovery item: %r", item)
                continue
            # Keep only terms the user actually tracks
            stub.matched_keywords = [k for k in stub.matched_keywords if k in tracked]
            stubs.append(stub)
        return stubs
