"""Pull the JSON payload out of a raw model response.

The model sometimes wraps its JSON in a ```json fence, sometimes returns it
bare, and sometimes returns a plain-text error (an invalid key, usually)
instead of data.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(json)?\s*([\s\S]*?)\s*```")
_AUTH_ERROR_MARKER = "api key not valid"


class ParseError(Exception):
    """The response was neither fenced nor bare valid JSON."""


class AuthenticationError(ParseError):
    """The response text is the provider's invalid-credential message."""


def extract_json(text: str) -> Any:
    """Return the parsed JSON value from a model response.

    Tries the first fenced block, then the whole text. Raises
    AuthenticationError or ParseError when neither parses.
    """
    raw = (text or "").strip()

    match = _FENCE_RE.search(raw)
    if match and match.group(2):
        try:
            return json.loads(match.group(2))
        except (ValueError, RecursionError) as exc:
            logger.warning("Fenced block is not valid JSON (%s), trying the whole response", exc)

    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as exc:
        logger.error("Failed to parse the response as JSON: %s", exc)
        logger.debug("Raw response snippet: %s", raw[:500] if raw else "(empty response)")
        if _AUTH_ERROR_MARKER in raw.lower():
            raise AuthenticationError("API key not valid. Please pass a valid API key.") from exc
        raise ParseError("Could not find or parse JSON in the model response.") from exc


def clean_item_text(text: str) -> str:
    """Trim a plain-text item and drop one wrapping double quote on each side."""
    cleaned = (text or "").strip()
    if cleaned.startswith('"'):
        cleaned = cleaned[1:]
    if cleaned.endswith('"'):
        cleaned = cleaned[:-1]
    return cleaned
