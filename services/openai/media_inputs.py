"""Utilities to build multimodal message payloads for Chat Completions."""

import base64
from typing import Any, Dict, List


def to_image_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Encode raw image bytes into a data URL suitable for vision input."""
    if not image_bytes:
        raise ValueError("Image bytes are required.")
    encoded = base64.b64encode(bytes(image_bytes)).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def build_vision_messages(instruction: str, image_url: str, *, detail: str = "low") -> List[Dict[str, Any]]:
    """Compose a single user message carrying the instruction and the image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": instruction},
                {"type": "image_url", "image_url": {"url": image_url, "detail": detail}},
            ],
        }
    ]


def build_system_messages(instruction: str) -> List[Dict[str, Any]]:
    """Wrap a fully rendered instruction as the lone system message."""
    return [{"role": "system", "content": instruction}]
