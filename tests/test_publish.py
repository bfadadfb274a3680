"""Tests for share text and intent links."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest

from pundit.content.models import ShortFormPost
from pundit.publishing.linkedin import (
    X_MAX_LENGTH,
    NothingToShare,
    linkedin_intent_url,
    linkedin_post_text,
    linkedin_share_url,
    short_form_text,
    x_intent_url,
)
from tests.conftest import make_result


def test_linkedin_text_has_every_part() -> None:
    text = linkedin_post_text(make_result(hook="Big news"))

    assert text.startswith("Big news")
    assert "I think this matters." in text
    assert "Watch this space." in text
    assert "#adtech" in text


def test_skipped_result_has_nothing_to_share() -> None:
    skipped = make_result(skipped=True)
    with pytest.raises(NothingToShare):
        linkedin_post_text(skipped)
    with pytest.raises(NothingToShare):
        short_form_text(skipped)


def test_short_form_is_truncated_for_x() -> None:
    result = make_result()
    result.posts.short_form = ShortFormPost(content="x" * 400, hashtags=["#adtech"])

    text = short_form_text(result)

    assert len(text) == X_MAX_LENGTH
    assert text.endswith("…")


def test_short_form_under_limit_is_untouched() -> None:
    result = make_result(hook="Short")
    assert short_form_text(result) == result.posts.short_form.as_text()


def test_linkedin_intent_url_encodes_text() -> None:
    url = linkedin_intent_url("Hello & welcome\n#adtech")

    parsed = urlparse(url)
    assert parsed.netloc == "www.linkedin.com"
    query = parse_qs(parsed.query)
    assert query["shareActive"] == ["true"]
    assert query["text"] == ["Hello & welcome\n#adtech"]


def test_linkedin_share_url_carries_only_the_link() -> None:
    url = linkedin_share_url("https://adage.com/story?id=1")
    assert parse_qs(urlparse(url).query) == {"url": ["https://adage.com/story?id=1"]}


def test_x_intent_url() -> None:
    url = x_intent_url("Take this #adtech")
    assert url.startswith("https://twitter.com/intent/tweet?text=")
    assert "%20" in url
    assert parse_qs(urlparse(url).query)["text"] == ["Take this #adtech"]
