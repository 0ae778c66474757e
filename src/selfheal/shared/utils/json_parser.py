"""
Tolerant JSON extraction for model completions.

Completions often wrap the JSON object in prose or a markdown fence, use
Python literals, or leave trailing commas. This module pulls the first
object/array out of the text and repairs the common mistakes.
"""

import json
import re
from typing import Any, Dict, List, Union

from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def parse_json_from_llm(response: str) -> Union[Dict[str, Any], List[Any], None]:
    """Extract and parse JSON from a completion. Returns None when nothing parses."""
    if not response:
        return None

    candidate = _extract_candidate(response)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        repaired = _repair_json(candidate)
        try:
            return json.loads(repaired)
        except json.JSONDecodeError as e:
            logger.warning("json_repair_failed", error=str(e), snippet=candidate[:100])
            return None


def _extract_candidate(response: str) -> str:
    match = _FENCE_PATTERN.search(response)
    if match:
        return match.group(1).strip()

    starts = [i for i in (response.find("{"), response.find("[")) if i != -1]
    if not starts:
        return response

    start_idx = min(starts)
    end_idx = max(response.rfind("}"), response.rfind("]"))
    if end_idx > start_idx:
        return response[start_idx : end_idx + 1]
    return response


def _repair_json(json_str: str) -> str:
    """
    Common completion repairs:
    - unquoted keys: { key: "val" } -> { "key": "val" }
    - trailing commas: [1, 2,] -> [1, 2]
    - control characters
    - Python literals True/False/None
    """
    json_str = re.sub(r"[\x00-\x1F\x7F]", "", json_str)
    json_str = re.sub(r"([{,])\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*:", r'\1"\2":', json_str)
    json_str = re.sub(r",\s*([\]}])", r"\1", json_str)
    json_str = re.sub(r"\bTrue\b", "true", json_str)
    json_str = re.sub(r"\bFalse\b", "false", json_str)
    json_str = re.sub(r"\bNone\b", "null", json_str)
    return json_str
