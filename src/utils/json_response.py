"""Parse JSON objects out of LLM responses.

Models asked for JSON still occasionally wrap it in markdown fences or add
a sentence before the object.  ``parse_json_response`` tolerates both.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def parse_json_response(response: str) -> dict[str, Any]:
    """Extract and parse the first JSON object in *response*.

    Parameters
    ----------
    response:
        Raw LLM response text.

    Returns
    -------
    dict
        The parsed object.

    Raises
    ------
    LLMError
        If no JSON object can be parsed from the text.
    """
    text = response.strip()

    fence_match = _JSON_FENCE_RE.search(text)
    if fence_match:
        text = fence_match.group(1).strip()

    if not text.startswith("{"):
        brace_start = text.find("{")
        brace_end = text.rfind("}")
        if brace_start != -1 and brace_end > brace_start:
            text = text[brace_start : brace_end + 1]

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("json_object_parse_failed", error=str(exc), response_preview=text[:200])
        raise LLMError(message="Model returned malformed JSON") from exc

    if not isinstance(parsed, dict):
        logger.warning("json_object_parse_not_dict", type=type(parsed).__name__)
        raise LLMError(message="Model returned JSON that is not an object")
    return parsed
