"""Pull the JSON payload out of a model reply."""

from __future__ import annotations

import json
import re

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json(text: str) -> object:
    """Decode the JSON document embedded in ``text``.

    Claude sometimes wraps JSON in a markdown fence or adds a sentence
    around it after a web search. Try the raw text first, then a fenced
    block, then the outermost ``{...}`` / ``[...]`` span.

    Raises:
        json.JSONDecodeError: if no candidate decodes.
    """
    stripped = text.strip()
    candidates = [stripped]

    fenced = _FENCE.search(stripped)
    if fenced:
        candidates.append(fenced.group(1).strip())

    spans = []
    for opener, closer in (("{", "}"), ("[", "]")):
        start = stripped.find(opener)
        end = stripped.rfind(closer)
        if start != -1 and end > start:
            spans.append((start, stripped[start : end + 1]))
    # Whichever bracket opens first is the outer document
    candidates.extend(span for _, span in sorted(spans))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    # Re-raise with the original text so callers see what came back
    return json.loads(stripped)
