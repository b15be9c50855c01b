import asyncio
import inspect
import logging
import os
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.label_route import router as label_router
from services.session_store import SessionStore
from utils.api_errors import APIError
from utils.session_sweeper import SessionSweeper

load_dotenv()  # Load environment variables from .env file if present

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"
OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "30"))
APP_ENV = os.getenv("APP_ENV", "production")

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)


def _error_body(error: str, details: Optional[str] = None) -> dict:
    body = {"success": False, "error": error}
    if details:
        body["details"] = details
    return body


async def _close_client(client) -> None:
    """Close the OpenAI client if it exposes a close/aclose method."""
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.warning("Error while closing the OpenAI client", exc_info=True)


def create_app(
    openai_client: Optional[AsyncOpenAI] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        openai_client: Optional pre-built client; one is created from
            OPENAI_API_KEY during startup when omitted.
        session_store: Optional store; a default fixed-TTL store is used when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Attach the OpenAI client and the session store to `app.state` and run
        the expired-session sweeper for the lifetime of the app.
        """
        owns_client = openai_client is None
        client = openai_client
        if client is None:
            if not os.getenv("OPENAI_API_KEY"):
                raise RuntimeError("OPENAI_API_KEY environment variable is not set")
            try:
                client = AsyncOpenAI(timeout=OPENAI_TIMEOUT_SECONDS, max_retries=0)
            except Exception as exc:
                raise RuntimeError("Failed to initialize OpenAI Async client") from exc

        store = session_store or SessionStore()
        app.state.openai_client = client
        app.state.session_store = store
        sweeper_task = asyncio.create_task(SessionSweeper(store).run_periodic_cleanup())

        try:
            yield
        finally:
            sweeper_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper_task
            if owns_client:
                await _close_client(client)

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Session-ID"],
    )

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error_body("Invalid request", str(exc.errors())))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        details = str(exc) if APP_ENV == "development" else "Something went wrong"
        # Rendered by ServerErrorMiddleware, which runs outside CORSMiddleware.
        headers = {"Access-Control-Allow-Origin": "*"} if "origin" in request.headers else None
        return JSONResponse(
            status_code=500, content=_error_body("Internal server error", details), headers=headers
        )

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting client presence and live session count.
        """
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "openai_available": getattr(request.app.state, "openai_client", None) is not None,
            "active_sessions": len(store) if store is not None else 0,
        }

    app.include_router(label_router)

    return app


app = create_app()
