"""Orchestrate label analysis, session creation and follow-up conversation."""

import logging
from typing import Any, Dict, Optional

from models.label_models import INVALID_INPUT, UNREADABLE_LABEL, GatewayResult, LabelAnalysis
from services.openai.conversation_service import ConversationService
from services.openai.label_analyzer import LabelAnalyzer
from services.openai.speech_service import DEFAULT_VOICE, SpeechService
from services.session_store import SessionNotFoundError, SessionStore
from utils.api_errors import (
    LabelUnreadableError,
    SessionExpiredError,
    UpstreamServiceError,
    ValidationError,
)

LOGGER = logging.getLogger(__name__)
GENERIC_SUMMARY = "Analysis complete. Ask me anything about this product."


def fallback_summary(analysis: LabelAnalysis) -> str:
    """Build a best-effort summary straight from the structured fields."""
    product = analysis.product_name or "This product"
    ingredients = ", ".join(analysis.ingredients) or "various ingredients"
    summary = f"{product} contains {ingredients}."
    calories = analysis.nutrition_facts.calories
    if calories:
        summary += f" It has approximately {calories} calories per serving."
    return summary


def _raise_for_failure(result: GatewayResult) -> None:
    """Translate a failed gateway result into the matching API error."""
    if result.kind == INVALID_INPUT:
        raise ValidationError(result.error or "Invalid request", result.details)
    if result.kind == UNREADABLE_LABEL:
        raise LabelUnreadableError(result.error or "Failed to analyze the food label", result.details)
    raise UpstreamServiceError(result.error or "Upstream service failed", result.details)


class LabelSessionController:
    """Drive the analyze -> summarize -> follow-up flow around a SessionStore.

    A session exists only after a successful analysis. Every later request must
    present its id; an unknown or expired id ends the flow and the client has to
    upload the label again.
    """

    def __init__(
        self,
        store: SessionStore,
        analyzer: LabelAnalyzer,
        conversation: ConversationService,
        speech: Optional[SpeechService] = None,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.conversation = conversation
        self.speech = speech

    async def analyze(self, image_bytes: bytes, mime_type: str) -> Dict[str, Any]:
        """Analyze an uploaded label and open a session for it.

        Args:
            image_bytes: Validated image bytes from the upload.
            mime_type: MIME type detected for the upload.

        Returns:
            The success payload with `sessionId`, `summary` and `analysis`.

        Raises:
            APIError: If analysis fails; no session is created in that case.
        """
        result = await self.analyzer.analyze(image_bytes, mime_type)
        if not result.success:
            LOGGER.warning("Label analysis failed (%s): %s", result.kind, result.details)
            _raise_for_failure(result)

        analysis: LabelAnalysis = result.value
        session_id = self.store.create(analysis)
        summary = await self._initial_summary(analysis)

        LOGGER.info("Session %s ready, summary: %.100s", session_id, summary)
        return {
            "success": True,
            "sessionId": session_id,
            "summary": summary,
            "hasAnalysis": True,
            "analysis": analysis.to_payload(),
        }

    async def chat(self, session_id: Optional[str], message: Optional[str], is_follow_up: bool) -> Dict[str, Any]:
        """Answer a follow-up question or regenerate the summary for a session."""
        if not session_id or not session_id.strip():
            raise ValidationError("Session ID is required in X-Session-ID header")
        analysis = self._load(session_id.strip())

        if is_follow_up and message and message.strip():
            result = await self.conversation.follow_up(analysis, message)
        else:
            is_follow_up = False
            result = await self.conversation.summarize(analysis)

        if not result.success:
            _raise_for_failure(result)
        return {"success": True, "response": result.value, "isFollowUp": is_follow_up}

    async def synthesize(self, text: Optional[str], voice: Optional[str] = None) -> bytes:
        """Return MP3 audio for the given text."""
        if self.speech is None:
            raise UpstreamServiceError("Speech synthesis is not configured")
        result = await self.speech.synthesize(text or "", DEFAULT_VOICE if voice is None else voice)
        if not result.success:
            _raise_for_failure(result)
        return result.value

    def _load(self, session_id: str) -> LabelAnalysis:
        try:
            return self.store.get(session_id)
        except SessionNotFoundError as exc:
            LOGGER.info("Rejected request for unknown session: %s", exc)
            raise SessionExpiredError() from exc

    async def _initial_summary(self, analysis: LabelAnalysis) -> str:
        """Return a summary that is never empty, falling back to local text."""
        try:
            result = await self.conversation.summarize(analysis)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Unexpected error generating summary")
            return GENERIC_SUMMARY

        if result.success and result.value:
            return result.value
        LOGGER.warning("Failed to generate summary, using fallback: %s", result.details or result.error)
        return fallback_summary(analysis)
