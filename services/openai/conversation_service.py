"""Summary and follow-up answers grounded in a stored label analysis."""

import logging
import os
from typing import Any, Dict, List

from openai import AsyncOpenAI

from models.label_models import INVALID_INPUT, UPSTREAM_FAILURE, GatewayResult, LabelAnalysis
from services.openai.label_prompts import build_follow_up_prompt, build_summary_prompt
from services.openai.media_inputs import build_system_messages
from services.openai.response_parser import extract_message_text

LOGGER = logging.getLogger(__name__)
CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-3.5-turbo")


class ConversationService:
    """Stateless text generation against a single LabelAnalysis."""

    def __init__(self, client: AsyncOpenAI, model: str = CHAT_MODEL, max_tokens: int = 300) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def summarize(self, analysis: LabelAnalysis) -> GatewayResult:
        """Return a short spoken-length digest of the product."""
        prompt = build_summary_prompt(analysis.to_payload())
        return await self._complete(prompt, error="Failed to generate summary")

    async def follow_up(self, analysis: LabelAnalysis, question: str) -> GatewayResult:
        """Answer a free-text question strictly from the analysis."""
        if not question or not question.strip():
            return GatewayResult.fail(INVALID_INPUT, "Question text is required")
        prompt = build_follow_up_prompt(analysis.to_payload(), question)
        return await self._complete(prompt, error="Failed to process follow-up question")

    async def _complete(self, prompt: str, *, error: str) -> GatewayResult:
        messages: List[Dict[str, Any]] = build_system_messages(prompt)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=0.5,
            )
            text = extract_message_text(response)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("%s: %s", error, exc)
            return GatewayResult.fail(UPSTREAM_FAILURE, error, str(exc))
        return GatewayResult.ok(text)
