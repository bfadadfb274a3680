"""Generation result data model: tones, metadata and platform posts."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

SENTIMENTS = ("Positive", "Negative", "Neutral")
VIRALITY_MIN = 0.0
VIRALITY_MAX = 10.0


class Tone(str, Enum):
    AUTHORITATIVE = "Authoritative"
    PROVOCATIVE = "Provocative"
    CONTROVERSIAL = "Controversial"
    AI_CHOICE = "AI Choice"

    @classmethod
    def parse(cls, value: str) -> Tone:
        """Accept either the display value or the member name, any case."""
        needle = value.strip().lower().replace("_", " ").replace("-", " ")
        for tone in cls:
            if needle in (tone.value.lower(), tone.name.lower().replace("_", " ")):
                return tone
        raise ValueError(f"Unknown tone: {value!r}")


class ResultStatus(str, Enum):
    PROCESSED = "PROCESSED"
    SKIP = "SKIP"


class LinkedInPost(BaseModel):
    hook: str
    body: str
    kicker: str
    hashtags: list[str] = Field(default_factory=list)

    def as_text(self) -> str:
        parts = [self.hook, self.body, self.kicker]
        if self.hashtags:
            parts.append(" ".join(self.hashtags))
        return "\n\n".join(p for p in parts if p)


class ShortFormPost(BaseModel):
    """The Twitter/X variant."""

    content: str
    hashtags: list[str] = Field(default_factory=list)

    def as_text(self) -> str:
        if not self.hashtags:
            return self.content
        return f"{self.content} {' '.join(self.hashtags)}"


class PlatformPosts(BaseModel):
    linkedin: LinkedInPost
    short_form: ShortFormPost


class MetaData(BaseModel):
    status: ResultStatus
    source_topic: str = "Unknown"
    sentiment: Literal["Positive", "Negative", "Neutral"] = "Neutral"
    virality_score: float = 0.0
    applied_tone: Tone | None = None

    @field_validator("sentiment", mode="before")
    @classmethod
    def _normalize_sentiment(cls, value: object) -> str:
        text = str(value or "").strip().capitalize()
        return text if text in SENTIMENTS else "Neutral"

    @field_validator("virality_score", mode="before")
    @classmethod
    def _clamp_virality(cls, value: object) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return VIRALITY_MIN
        return max(VIRALITY_MIN, min(VIRALITY_MAX, score))


class ProcessingResult(BaseModel):
    """Outcome of one generation call.

    ``posts`` is present only when ``meta.status`` is PROCESSED. A SKIP is a
    valid terminal outcome (dead link, off-topic page), not an error.
    """

    posts: PlatformPosts | None = None
    meta: MetaData

    @property
    def skipped(self) -> bool:
        return self.meta.status == ResultStatus.SKIP

    @property
    def headline(self) -> str | None:
        """The live-verified headline, when the model produced one."""
        if self.posts is None:
            return None
        return self.posts.linkedin.hook.strip() or None


class SuggestedSource(BaseModel):
    name: str
    url: str


class OnboardingData(BaseModel):
    suggested_sources: list[SuggestedSource] = Field(default_factory=list)
    suggested_keywords: list[str] = Field(default_factory=list)
    suggested_companies: list[str] = Field(default_factory=list)
    analysis: str = ""
