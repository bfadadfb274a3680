"""Jinja2 prompt templates for generation, discovery and onboarding."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

_TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

# Filler phrases the drafts must never contain
FORBIDDEN_WORDS = [
    "Delve",
    "Landscape",
    "Tapestry",
    "Game-changer",
    "Excited to announce",
    "In today's fast-paced world",
]

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)
_env.globals["forbidden_words"] = FORBIDDEN_WORDS


def render(template_name: str, **context: object) -> str:
    """Render a prompt template; a missing variable is an error."""
    template = _env.get_template(template_name)
    return template.render(**context)
