"""
Extraction of the JSON payload from AI replies.

Models are told to answer with JSON only but often wrap the object in
markdown code fences (```json ... ```). This module strips that wrapping and
parses the object, independent of any network call.
"""

import json
import re
from typing import Dict, Optional

from civicpulse.core.exceptions import AIResponseParseError

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the content of the first fenced block, or the trimmed text if unfenced."""
    text = (text or "").strip()
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    # Unterminated fence, e.g. the reply was cut off by max_tokens
    if text.startswith("```"):
        text = re.sub(r"^```(?:json|JSON)?", "", text)
    return text.strip()


def extract_json_payload(text: Optional[str]) -> Dict:
    """
    Parse the JSON object contained in an AI reply.

    Raises:
        AIResponseParseError: empty reply, invalid JSON, or a non-object payload
    """
    if not text or not text.strip():
        raise AIResponseParseError("AI reply was empty")

    payload = strip_code_fences(text)
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"AI reply is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise AIResponseParseError(f"AI reply JSON is a {type(parsed).__name__}, expected an object")
    return parsed


def text_field(value) -> str:
    """Free-text reply fields are rendered as strings; missing or null becomes ""."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value) if isinstance(value, (dict, list)) else str(value)
