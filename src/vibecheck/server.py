"""FastAPI web server for vibecheck."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from . import mood as mood_classifier
from .backends import ProviderRouter
from .config import get_backfill_music, load_settings
from .conversation import Conversation
from .core import ChatOptions, Settings
from .errors import ConfigurationError
from .export import conversation_to_json, conversation_to_markdown, message_from_dict, message_to_dict
from .pipeline import ResponsePipeline
from .session import SessionTimer, Ticker
from .tracks import track_suggestions

logger = logging.getLogger(__name__)

# Shared state (populated on first request)
_settings: Settings | None = None
_conversation: Conversation | None = None
_http_client: httpx.AsyncClient | None = None  # None: one client per request


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Stop the session ticker so no callback outlives the loop.
    if _conversation is not None:
        _conversation.timer.close()


app = FastAPI(title="vibecheck", version="0.1.0", lifespan=lifespan)


def _get_settings() -> Settings:
    """Lazily load and cache settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
        logger.info(
            "Loaded settings: default model %s, %d custom proxies",
            _settings.default_model, len(_settings.custom_proxies),
        )
    return _settings


def _get_pipeline() -> ResponsePipeline:
    return ResponsePipeline(ProviderRouter(_get_settings(), _http_client), backfill_music=get_backfill_music())


def _get_conversation() -> Conversation:
    """Lazily create the server's conversation."""
    global _conversation
    if _conversation is None:
        _conversation = Conversation(_get_pipeline(), SessionTimer(ticker=Ticker()))
    return _conversation


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


# ── Routes ───────────────────────────────────────────────────────


@app.post("/api/chat")
async def chat(payload: dict = Body(...)):
    """Generate one reply without touching the shared conversation."""
    user_message = payload.get("userMessage")
    if not isinstance(user_message, str) or not user_message.strip():
        return _error(400, "userMessage is required")

    options = ChatOptions.from_dict(payload.get("options"))
    api_key = payload.get("apiKey") or None
    pipeline = _get_pipeline()

    try:
        pipeline.router.resolve(options.model_id, api_key=api_key)
    except ConfigurationError as e:
        return _error(400, str(e))

    history = [message_from_dict(m) for m in payload.get("previousMessages") or [] if isinstance(m, dict)]
    message = await pipeline.generate(user_message, history, options, api_key=api_key)
    return {"message": message_to_dict(message)}


@app.post("/api/mood")
async def detect_mood(payload: dict = Body(...)):
    return {"mood": mood_classifier.classify(str(payload.get("text") or ""))}


@app.get("/api/models")
async def get_models():
    """Return built-in models and configured custom proxies."""
    settings = _get_settings()
    return {
        "default": settings.default_model,
        "models": ProviderRouter(settings).list_models(),
    }


@app.get("/api/tracks")
async def get_tracks(
    mood: str | None = Query(None, description="Mood tag to match"),
    limit: int = Query(1, ge=1, le=10),
):
    return [s.to_dict() for s in track_suggestions(mood, limit=limit)]


@app.get("/api/messages")
async def get_messages():
    conv = _get_conversation()
    return {"messages": [message_to_dict(m) for m in conv.messages]}


@app.post("/api/messages")
async def send_message(payload: dict = Body(...)):
    """Send a message in the shared conversation and return the reply."""
    text = payload.get("text")
    if not isinstance(text, str) or not text.strip():
        return _error(400, "text is required")

    conv = _get_conversation()
    options = ChatOptions.from_dict(payload.get("options"))
    api_key = payload.get("apiKey") or None
    try:
        conv.pipeline.router.resolve(options.model_id, api_key=api_key)
    except ConfigurationError as e:
        return _error(400, str(e))

    reply = await conv.send(text, options, api_key=api_key)
    return {
        "message": message_to_dict(reply),
        "visibleSuggestions": [s.to_dict() for s in conv.visible_suggestions(reply)],
        "session": conv.timer.snapshot(),
    }


@app.delete("/api/messages")
async def clear_messages():
    conv = _get_conversation()
    conv.clear()
    return {"messages": [], "session": conv.timer.snapshot()}


@app.get("/api/session")
async def get_session():
    return _get_conversation().timer.snapshot()


@app.post("/api/session/toggle")
async def toggle_session():
    timer = _get_conversation().timer
    timer.toggle()
    return timer.snapshot()


@app.post("/api/session/end")
async def end_session():
    timer = _get_conversation().timer
    timer.end()
    return timer.snapshot()


@app.get("/api/export")
async def export_conversation(
    format: str = Query("md", description="Export format: md or json"),
):
    """Export the shared conversation as Markdown or JSON."""
    messages = _get_conversation().messages
    if format == "json":
        return Response(
            content=conversation_to_json(messages),
            media_type="application/json",
            headers={"Content-Disposition": 'attachment; filename="vibecheck.json"'},
        )
    if format != "md":
        raise HTTPException(status_code=400, detail=f"Unknown format: {format}")
    return Response(
        content=conversation_to_markdown(messages),
        media_type="text/markdown",
        headers={"Content-Disposition": 'attachment; filename="vibecheck.md"'},
    )
