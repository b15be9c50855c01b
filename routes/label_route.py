"""FastAPI routes for label analysis, chat and speech."""

from typing import Optional

from fastapi import APIRouter, File, Header, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from controllers.label_session_controller import LabelSessionController
from services.openai.conversation_service import ConversationService
from services.openai.label_analyzer import LabelAnalyzer
from services.openai.speech_service import DEFAULT_VOICE, SpeechService
from utils.api_errors import UpstreamServiceError
from utils.media_validation import read_image_upload

router = APIRouter(prefix="/api", tags=["label"])


class ChatPayload(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	message: Optional[str] = None
	is_follow_up: bool = Field(default=False, alias="isFollowUp")


class SpeechPayload(BaseModel):
	text: Optional[str] = None
	voice: str = DEFAULT_VOICE


def _get_controller(request: Request) -> LabelSessionController:
	"""Build the orchestrator from the shared client and session store."""
	openai_client = getattr(request.app.state, "openai_client", None)
	if openai_client is None:
		raise UpstreamServiceError("OpenAI client not initialized.")
	return LabelSessionController(
		store=request.app.state.session_store,
		analyzer=LabelAnalyzer(openai_client),
		conversation=ConversationService(openai_client),
		speech=SpeechService(openai_client),
	)


@router.post("/analyze", summary="Analyze a food label image and open a session")
async def analyze_label(request: Request, image: Optional[UploadFile] = File(None)):
	"""Validate the upload, extract the label and return a new session id."""
	image_bytes, mime_type = await read_image_upload(image)
	return await _get_controller(request).analyze(image_bytes, mime_type)


@router.post("/chat", summary="Summarize or answer a follow-up for a session")
async def chat(
	request: Request,
	payload: Optional[ChatPayload] = None,
	x_session_id: Optional[str] = Header(default=None),
):
	payload = payload or ChatPayload()
	return await _get_controller(request).chat(x_session_id, payload.message, payload.is_follow_up)


@router.post("/tts", summary="Synthesize speech for an answer")
async def text_to_speech(request: Request, payload: SpeechPayload):
	audio = await _get_controller(request).synthesize(payload.text, payload.voice)
	return Response(
		content=audio,
		media_type="audio/mpeg",
		headers={"Cache-Control": "no-cache", "Accept-Ranges": "bytes"},
	)
