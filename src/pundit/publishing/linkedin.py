"""Share links for LinkedIn and X.

Native LinkedIn posting needs an OAuth app; intent URLs open the
platform's composer pre-filled instead and need no credentials.
"""

from __future__ import annotations

from urllib.parse import quote, urlencode

from pundit.content.models import ProcessingResult

LINKEDIN_FEED_URL = "https://www.linkedin.com/feed/"
LINKEDIN_SHARE_OFFSITE_URL = "https://www.linkedin.com/sharing/share-offsite/"
X_INTENT_URL = "https://twitter.com/intent/tweet"

# X rejects longer posts
X_MAX_LENGTH = 280


class NothingToShare(ValueError):
    """The result was skipped, so there is no draft."""


def linkedin_post_text(result: ProcessingResult) -> str:
    if result.posts is None:
        raise NothingToShare("No draft for a skipped article")
    return result.posts.linkedin.as_text()


def short_form_text(result: ProcessingResult) -> str:
    if result.posts is None:
        raise NothingToShare("No draft for a skipped article")
    text = result.posts.short_form.as_text()
    if len(text) > X_MAX_LENGTH:
        text = text[: X_MAX_LENGTH - 1].rstrip() + "…"
    return text


def linkedin_intent_url(text: str) -> str:
    """Open the LinkedIn feed with the share box pre-filled."""
    return f"{LINKEDIN_FEED_URL}?shareActive=true&text={quote(text, safe='')}"


def linkedin_share_url(article_url: str) -> str:
    """Legacy share dialog: shares only the link, not the body."""
    return f"{LINKEDIN_SHARE_OFFSITE_URL}?{urlencode({'url': article_url})}"


def x_intent_url(text: str) -> str:
    return f"{X_INTENT_URL}?{urlencode({'text': text}, quote_via=quote)}"
