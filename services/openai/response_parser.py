"""Helpers to decode Chat Completions outputs."""

import json
import re
from typing import Any, Dict, Optional

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def unwrap_code_fence(text: str) -> str:
    """Strip a surrounding Markdown code fence (```json ... ```) if present."""
    stripped = (text or "").strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def decode_json_object(text: str) -> Dict[str, Any]:
    """Unwrap a possible code fence and parse the remainder as a JSON object.

    Raises:
        ValueError: If the content is empty, not valid JSON, or not an object.
    """
    body = unwrap_code_fence(text)
    if not body:
        raise ValueError("Model response was empty.")
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Model response is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Model response JSON is not an object.")
    return parsed


def extract_message_text(response: Any) -> str:
    """Return the first choice's message content from a chat completion."""
    choices = getattr(response, "choices", None)
    if not choices:
        raise RuntimeError("No choices in API response.")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if not content:
        raise RuntimeError("Invalid message format in API response.")
    return content.strip()


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "prompt_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "completion_tokens", None) if usage else None,
    }
