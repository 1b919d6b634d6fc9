"""Split an assistant reply into display text and structured suggestions.

Replies carry their suggestions inside a fenced block tagged ``json``::

    Some warm words for the user.
    ```json
    [{"type": "quote", "text": "...", "author": "..."}]
    ```

Grammar, as recognised here:

- A block opens with three backticks immediately followed by ``json``
  (case-sensitive), then optional whitespace.
- It closes at the next three backticks. Blocks do not nest.
- Only the FIRST block is parsed for suggestions.
- EVERY block is removed from the display text.

Extraction never raises. A block that is not valid JSON, is not an array,
or holds any element that fails validation yields ``suggestions=None``
while the cleaned text is still returned.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

from .config import MAX_MAIN_LENGTH, VISIBLE_SUGGESTIONS
from .core import Suggestion, suggestion_from_dict
from .errors import ValidationError

logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")

ELLIPSIS = "…"


@dataclass(frozen=True)
class Extraction:
    cleaned_text: str
    suggestions: Optional[list[Suggestion]]


def find_block(text: str) -> str | None:
    """Return the body of the first fenced json block, or None."""
    match = FENCED_JSON.search(text)
    return match.group(1) if match else None


def strip_blocks(text: str) -> str:
    """Remove every fenced json block and trim the result."""
    # Removing one block can splice its neighbours into a new one.
    while FENCED_JSON.search(text):
        text = FENCED_JSON.sub("", text)
    return text.strip()


def parse_suggestions(body: str) -> list[Suggestion]:
    """Parse a block body into suggestions.

    Raises ValidationError if the body is not a JSON array or any element is
    invalid; one bad element rejects the whole list.
    """
    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as e:
        raise ValidationError(f"suggestion block is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ValidationError(f"suggestion block must be an array, got {type(data).__name__}")

    return [suggestion_from_dict(item) for item in data]


def truncate(text: str, limit: int = MAX_MAIN_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + ELLIPSIS


def extract(raw_text: str | None, limit: int = MAX_MAIN_LENGTH) -> Extraction:
    """Return the display text and validated suggestions of ``raw_text``."""
    raw_text = raw_text or ""
    body = find_block(raw_text)
    if body is None:
        return Extraction(cleaned_text=truncate(raw_text.strip(), limit), suggestions=None)

    suggestions: Optional[list[Suggestion]]
    try:
        suggestions = parse_suggestions(body)
    except ValidationError as e:
        logger.debug("Dropping suggestion block: %s", e)
        suggestions = None

    return Extraction(cleaned_text=truncate(strip_blocks(raw_text), limit), suggestions=suggestions)


def visible(suggestions, limit: int = VISIBLE_SUGGESTIONS) -> list[Suggestion]:
    """Return the suggestions a client should display (at most ``limit``)."""
    return list(suggestions or [])[:limit]


def to_block(suggestions: list[Suggestion]) -> str:
    """Render suggestions as a fenced json block, as a model would emit them."""
    payload = json.dumps([s.to_dict() for s in suggestions], ensure_ascii=False)
    return f"```json\n{payload}\n```"
