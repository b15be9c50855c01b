"""Food label extraction via an OpenAI vision model."""

import logging
import os
import time
from typing import Any

from openai import AsyncOpenAI

from models.label_models import (
    INVALID_INPUT,
    UNREADABLE_LABEL,
    UPSTREAM_FAILURE,
    GatewayResult,
    LabelAnalysis,
)
from services.openai.label_prompts import build_analysis_prompt
from services.openai.media_inputs import build_vision_messages, to_image_data_url
from services.openai.response_parser import decode_json_object, extract_message_text, extract_usage
from utils.media_validation import ALLOWED_IMAGE_TYPES, normalize_mime_type

LOGGER = logging.getLogger(__name__)
VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4.1-mini")
MAX_TOKENS = 1000


class LabelAnalyzer:
    """Send label images to OpenAI and decode the structured extraction."""

    def __init__(self, client: AsyncOpenAI, model: str = VISION_MODEL) -> None:
        """Initialize the analyzer with a shared OpenAI client.

        Args:
            client: Async OpenAI client taken from application state.
            model: Vision-capable chat model name.
        """
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.instruction = build_analysis_prompt()

    async def analyze(self, image_bytes: bytes, mime_type: str) -> GatewayResult:
        """Extract a LabelAnalysis from the image.

        Args:
            image_bytes: Raw bytes of the uploaded image; never modified.
            mime_type: MIME type of the image (JPEG, PNG, GIF or WEBP).

        Returns:
            A GatewayResult whose value is a LabelAnalysis on success. Failures
            carry kind `invalid_input`, `unreadable_label` or `upstream_failure`.
        """
        mime = normalize_mime_type(mime_type)
        if not image_bytes:
            return GatewayResult.fail(INVALID_INPUT, "Invalid image data", "Image content is empty.")
        if mime not in ALLOWED_IMAGE_TYPES:
            return GatewayResult.fail(INVALID_INPUT, "Invalid image data", f"Invalid MIME type: {mime_type}")

        LOGGER.info("Starting label analysis (mime=%s, bytes=%d)", mime, len(image_bytes))
        start_time = time.time()
        try:
            response = await self._create_response(to_image_data_url(image_bytes, mime))
            content = extract_message_text(response)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Label analysis request failed: %s", exc)
            return GatewayResult.fail(UPSTREAM_FAILURE, "Failed to analyze image", str(exc))

        LOGGER.info(
            "Label analysis response received in %.3fs (usage=%s)",
            time.time() - start_time,
            extract_usage(response),
        )
        return self._parse_content(content)

    async def _create_response(self, image_url: str) -> Any:
        return await self.client.chat.completions.create(
            model=self.model,
            messages=build_vision_messages(self.instruction, image_url),
            max_tokens=MAX_TOKENS,
            response_format={"type": "json_object"},
        )

    def _parse_content(self, content: str) -> GatewayResult:
        """Decode model content into a result."""
        try:
            analysis = LabelAnalysis.from_payload(decode_json_object(content))
        except (ValueError, TypeError) as exc:
            LOGGER.error("Failed to parse label analysis. Raw content: %.200s", content)
            return GatewayResult.fail(UPSTREAM_FAILURE, "Failed to analyze image", f"Failed to parse API response: {exc}")

        if analysis.is_error:
            LOGGER.info("Model could not read the image as a food label")
            return GatewayResult.fail(
                UNREADABLE_LABEL,
                analysis.error_message,
                "The model could not process the image as a food label",
            )
        return GatewayResult.ok(analysis)
