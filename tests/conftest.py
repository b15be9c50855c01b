import io
import json
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Add project root to path
root = Path(__file__).resolve().parents[1]
project_root = str(root)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from main import create_app  # noqa: E402
from services.session_store import SessionStore  # noqa: E402

CHOCO_BAR = {
    "productName": "Choco Bar",
    "ingredients": ["sugar", "cocoa"],
    "nutritionFacts": {"servingSize": "1 bar", "calories": 200, "macros": {}, "otherNutrients": {}},
    "allergens": [],
    "certifications": [],
    "expiryDate": "",
    "confidenceScores": {"ingredients": 0.9, "nutritionFacts": 0.8, "allergens": 0.7},
    "isError": False,
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def chat_response(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=7),
    )


class FakeOpenAI:
    """Stand-in for AsyncOpenAI that routes calls by prompt shape.

    Set an attribute to an Exception instance to make that call fail.
    """

    def __init__(self) -> None:
        self.vision_content = json.dumps(CHOCO_BAR)
        self.summary = "Choco Bar is a sweet snack made mostly of sugar and cocoa."
        self.answer = "The label does not list a vegan certification; it contains sugar and cocoa."
        self.speech_bytes = b"ID3-fake-mp3"
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(side_effect=self._complete)))
        self.audio = SimpleNamespace(speech=SimpleNamespace(create=AsyncMock(side_effect=self._speak)))

    @staticmethod
    def _resolve(value):
        if isinstance(value, Exception):
            raise value
        return value

    async def _complete(self, **kwargs):
        messages = kwargs["messages"]
        if messages[0]["role"] == "user":
            return chat_response(self._resolve(self.vision_content))
        if "User Question:" in messages[0]["content"]:
            return chat_response(self._resolve(self.answer))
        return chat_response(self._resolve(self.summary))

    async def _speak(self, **kwargs):
        return SimpleNamespace(content=self._resolve(self.speech_bytes))

    def calls_of(self, kind: str):
        calls = self.chat.completions.create.call_args_list
        if kind == "vision":
            return [c for c in calls if c.kwargs["messages"][0]["role"] == "user"]
        if kind == "follow_up":
            return [c for c in calls if "User Question:" in c.kwargs["messages"][0].get("content", "")]
        return [
            c
            for c in calls
            if c.kwargs["messages"][0]["role"] == "system" and "User Question:" not in c.kwargs["messages"][0]["content"]
        ]


def make_image_bytes(fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture()
def store(clock) -> SessionStore:
    return SessionStore(ttl_seconds=900, clock=clock)


@pytest.fixture()
def client(fake_openai, store):
    app = create_app(openai_client=fake_openai, session_store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def choco_bar_payload() -> dict:
    return json.loads(json.dumps(CHOCO_BAR))


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")
