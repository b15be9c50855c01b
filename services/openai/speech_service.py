"""Text-to-speech helper built on OpenAI's speech models."""

import logging
import os

from openai import AsyncOpenAI

from models.label_models import INVALID_INPUT, UPSTREAM_FAILURE, GatewayResult

LOGGER = logging.getLogger(__name__)
TTS_MODEL = os.getenv("OPENAI_TTS_MODEL", "tts-1")
DEFAULT_VOICE = "alloy"
VALID_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")


class SpeechService:
    """Create MP3 audio from answer text."""

    def __init__(self, client: AsyncOpenAI, model: str = TTS_MODEL) -> None:
        """Initialize the service with a shared OpenAI client."""
        if client is None:
            raise ValueError("OpenAI client is required for speech synthesis.")
        self.client = client
        self.model = model

    async def synthesize(self, text: str, voice: str = DEFAULT_VOICE) -> GatewayResult:
        """Return a result whose value is the encoded MP3 byte stream."""
        if not text or not text.strip():
            return GatewayResult.fail(INVALID_INPUT, "Text is required")
        normalized_voice = (voice or "").strip().lower()
        if normalized_voice not in VALID_VOICES:
            return GatewayResult.fail(
                INVALID_INPUT,
                f"Invalid voice. Must be one of: {', '.join(VALID_VOICES)}",
            )

        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=normalized_voice,
                input=text,
                response_format="mp3",
                speed=1.0,
            )
            audio = await self._read_audio(response)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("OpenAI speech request failed: %s", exc)
            return GatewayResult.fail(UPSTREAM_FAILURE, "Failed to generate speech", str(exc))

        if not audio:
            return GatewayResult.fail(UPSTREAM_FAILURE, "Failed to generate speech", "Speech response was empty.")
        return GatewayResult.ok(audio)

    @staticmethod
    async def _read_audio(response) -> bytes:
        """Pull raw bytes out of the binary response wrapper."""
        if isinstance(response, (bytes, bytearray)):
            return bytes(response)
        content = getattr(response, "content", None)
        if isinstance(content, (bytes, bytearray)):
            return bytes(content)
        return await response.aread()
