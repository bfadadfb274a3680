"""Suggest sources, keywords and companies for a new user's profession."""

from __future__ import annotations

import json

from anthropic import APIError
from pydantic import ValidationError
from tenacity import RetryError

from pundit.content.generator import GenerationError
from pundit.content.models import OnboardingData
from pundit.llm.client import ClaudeClient
from pundit.llm.parsing import extract_json
from pundit.llm.prompts import render


class ProfessionAnalyzer:
    """Bootstrap a tracking setup from a one-line profession description."""

    def __init__(self, client: ClaudeClient) -> None:
        self._client = client

    def analyze(self, profession: str, count: int = 20) -> OnboardingData:
        """Ask Claude for ``count`` sources, keywords and companies.

        Raises GenerationError if the request fails or the reply cannot be
        used; onboarding can always be skipped, so there is no fallback here.
        """
        try:
            response = self._client.generate(
                system="You are an industry analyst who curates news monitoring setups.",
                messages=[
                    {
                        "role": "user",
                        "content": render("onboarding.j2", profession=profession, count=count),
                    }
                ],
                temperature=0.4,
            )
        except (APIError, RetryError) as exc:
            raise GenerationError(f"Claude request failed: {exc}") from exc

        try:
            return OnboardingData.model_validate(extract_json(response))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise GenerationError("Could not read onboarding suggestions") from exc
