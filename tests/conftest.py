"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from pundit.config import Settings
from pundit.content.models import (
    LinkedInPost,
    MetaData,
    PlatformPosts,
    ProcessingResult,
    ResultStatus,
    ShortFormPost,
    Tone,
)
from pundit.discovery.models import ArticleStub
from pundit.inbox.lifecycle import ArticleController
from pundit.llm.client import ClaudeClient
from pundit.storage.database import dispose_engines
from pundit.tracking.store import TrackingStore


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory."""
    data = tmp_path / "data"
    data.mkdir()
    return data


@pytest.fixture
def settings(tmp_data_dir: Path) -> Settings:
    """Create test settings with temporary paths."""
    return Settings(
        anthropic_api_key="test-key-not-real",
        model="claude-sonnet-4-20250514",
        max_tokens=1024,
        temperature=0.7,
        data_dir=tmp_data_dir,
        db_path=tmp_data_dir / "test.db",
        session_path=tmp_data_dir / "session.json",
        autosave_delay_seconds=0.05,
    )


@pytest.fixture(autouse=True)
def _fresh_engines():
    yield
    dispose_engines()


@pytest.fixture
def mock_claude_client(settings: Settings) -> ClaudeClient:
    """Create a ClaudeClient with a mocked Anthropic SDK."""
    client = ClaudeClient(settings)
    # Replace the internal Anthropic client with a mock
    mock_anthropic = MagicMock()
    client._client = mock_anthropic
    return client


@pytest.fixture
def tracking() -> TrackingStore:
    return TrackingStore(
        keywords=["AdTech", "Programmatic"],
        companies=["The Trade Desk"],
    )


@pytest.fixture
def generator() -> MagicMock:
    """A stand-in Content Generation Client."""
    gen = MagicMock()
    gen.process.side_effect = lambda context, terms, url, tone: make_result(tone=tone)
    return gen


@pytest.fixture
def controller(generator: MagicMock, tracking: TrackingStore) -> ArticleController:
    return ArticleController(generator, tracking)


def make_mock_response(text: str, input_tokens: int = 100, output_tokens: int = 200):
    """Helper to create a mock Anthropic API response."""
    mock_response = MagicMock()
    mock_response.content = [MagicMock(type="text", text=text)]
    mock_response.usage.input_tokens = input_tokens
    mock_response.usage.output_tokens = output_tokens
    return mock_response


def make_stub(n: int, **overrides) -> ArticleStub:
    fields = {
        "title": f"Story {n}",
        "summary": f"Summary {n}",
        "link": f"https://a.com/{n}",
        "source_name": "Ad Age",
        "matched_keywords": ["AdTech"],
    }
    fields.update(overrides)
    return ArticleStub(**fields)


def make_result(
    tone: Tone = Tone.AI_CHOICE,
    hook: str = "Live headline",
    skipped: bool = False,
) -> ProcessingResult:
    if skipped:
        return ProcessingResult(
            posts=None,
            meta=MetaData(status=ResultStatus.SKIP, applied_tone=tone),
        )
    return ProcessingResult(
        posts=PlatformPosts(
            linkedin=LinkedInPost(
                hook=hook,
                body="I think this matters.",
                kicker="Watch this space.",
                hashtags=["#adtech"],
            ),
            short_form=ShortFormPost(content=f"{hook}: my take", hashtags=["#adtech"]),
        ),
        meta=MetaData(
            status=ResultStatus.PROCESSED,
            source_topic="Programmatic",
            sentiment="Positive",
            virality_score=7,
            applied_tone=tone,
        ),
    )
