"""Content generation client: turns an article into platform posts."""

from __future__ import annotations

import json
import logging

from anthropic import APIError
from pydantic import ValidationError
from tenacity import RetryError

from pundit.content.models import MetaData, ProcessingResult, ResultStatus, Tone
from pundit.llm.client import ClaudeClient
from pundit.llm.parsing import extract_json
from pundit.llm.prompts import render

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The model call failed or returned something unusable."""


def build_article_context(title: str, summary: str, source_name: str) -> str:
    return f"TITLE: {title}\nSUMMARY: {summary}\nSOURCE: {source_name}"


class PostGenerator:
    """Asks Claude for a LinkedIn + short-form draft in a given tone."""

    def __init__(self, client: ClaudeClient) -> None:
        self._client = client

    @property
    def usage_summary(self) -> dict:
        return self._client.usage_summary

    def process(
        self,
        context: str,
        terms: list[str],
        article_url: str,
        tone: Tone = Tone.AI_CHOICE,
    ) -> ProcessingResult:
        """Generate posts for an article described by ``context``.

        Returns a PROCESSED result carrying posts, or a SKIP result with
        ``posts=None``. Raises GenerationError on any failure.
        """
        system = render(
            "generate_post.j2",
            article_url=article_url,
            terms=terms,
            tone=tone.value,
            verify_live=True,
        )
        return self._run(system, context, tone)

    def review_url(
        self,
        url: str,
        terms: list[str],
        tone: Tone = Tone.AI_CHOICE,
    ) -> ProcessingResult:
        """Instant review: verify a URL directly and draft from its live content."""
        context = (
            f"Open {url}, read the article it points to and draft posts from it. "
            "Use the live headline as the hook."
        )
        return self.process(context, terms, url, tone)

    def _run(self, system: str, context: str, tone: Tone) -> ProcessingResult:
        try:
            response = self._client.generate(
                system=system,
                messages=[{"role": "user", "content": context}],
                web_search=True,
            )
        except (APIError, RetryError) as exc:
            raise GenerationError(f"Claude request failed: {exc}") from exc

        try:
            data = extract_json(response)
        except json.JSONDecodeError as exc:
            raise GenerationError("Model reply was not valid JSON") from exc
        if not isinstance(data, dict):
            raise GenerationError("Model reply was not a JSON object")

        return parse_result(data, tone)


def parse_result(data: dict, tone: Tone) -> ProcessingResult:
    """Validate a decoded model reply into a ProcessingResult."""
    status = str(data.get("status", "")).upper()

    if status == ResultStatus.SKIP.value:
        logger.info("model skipped article (tone=%s)", tone.value)
        return ProcessingResult(
            posts=None,
            meta=MetaData(
                status=ResultStatus.SKIP,
                source_topic="Unknown",
                sentiment="Neutral",
                virality_score=0,
                applied_tone=tone,
            ),
        )

    if status != ResultStatus.PROCESSED.value:
        raise GenerationError(f"Unexpected result status: {data.get('status')!r}")
    if not data.get("posts"):
        raise GenerationError("PROCESSED result carried no posts")

    meta = dict(data.get("meta") or {})
    meta["status"] = ResultStatus.PROCESSED
    meta["applied_tone"] = tone
    try:
        return ProcessingResult(posts=data["posts"], meta=meta)
    except ValidationError as exc:
        raise GenerationError(f"Malformed result: {exc.error_count()} field errors") from exc
