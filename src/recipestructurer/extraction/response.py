"""Isolate the JSON payload from a free-form model reply."""

import re

from recipestructurer.errors import ExtractionFailure
from recipestructurer.logging_config import get_logger

logger = get_logger(__name__)

# First fenced block tagged as JSON
JSON_FENCE = re.compile(r"```[ \t]*json[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)

# First fenced block with any (or no) tag
ANY_FENCE = re.compile(r"```[^\n`]*\r?\n(.*?)```", re.DOTALL)


def extract(raw_response: str | None) -> str:
    """
    Locate the structured payload in a model response.

    Looks for a ```json fenced block first, then any fenced block, and
    otherwise treats the whole response as the payload. Only the first
    matching block is considered.

    Raises:
        ExtractionFailure: If the response is empty or the chosen block is empty.
    """
    if raw_response is None or not raw_response.strip():
        raise ExtractionFailure("Response is empty, no payload to extract")

    for pattern, label in ((JSON_FENCE, "json fence"), (ANY_FENCE, "fence")):
        match = pattern.search(raw_response)
        if match:
            payload = match.group(1).strip()
            if not payload:
                raise ExtractionFailure(f"First {label} in response is empty")
            logger.debug(f"Extracted payload from {label} ({len(payload)} chars)")
            return payload

    return raw_response
