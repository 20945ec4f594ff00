"""
FastAPI Router — Models • Session • Conversations • Messages
===========================================================

Purpose
-------
Defines the HTTP API for:
- The model catalogue and the configured default model
- The current session user
- Conversations: list, create, read, rename/change model, delete (one or all)
- Messages: post a user message and receive the model's reply

Key Notes
---------
- Input validation via Pydantic models in `chatbot_backend.api.models`.
- Auth cookie (`settings.AUTH_COOKIE_NAME`, JWT) is required on every route
  except the model catalogue.
- Every conversation lookup is scoped by the session user; someone else's
  conversation is reported exactly like a missing one (404).
- Failures are raised as `HTTPException`; the app renders them as
  ``{"success": false, "error": detail}``.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request

from chatbot_backend.api.exceptions import ConversationNotFoundError, InvalidMessageError
from chatbot_backend.api.models import (
    ConversationCreationDetails,
    ModelInfo,
    NewMessage,
    SessionUser,
    UpdateConversationDetails,
)
from chatbot_backend.api.reply_generator import UpstreamUnavailableError
from chatbot_backend.api.utils import get_session_user
from chatbot_backend.database.config.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""

AVAILABLE_MODELS = [
    ModelInfo(id="gemini-2.5-flash", name="Gemini 2.5 Flash", description="Fast and versatile"),
    ModelInfo(id="gemini-2.5-pro", name="Gemini 2.5 Pro", description="Most capable model"),
    ModelInfo(id="gemini-2.0-flash", name="Gemini 2.0 Flash", description="Previous gen fast model"),
    ModelInfo(id="gemini-2.0-flash-lite", name="Gemini 2.0 Flash Lite", description="Lightweight and fast"),
    ModelInfo(id="gemini-1.5-pro", name="Gemini 1.5 Pro", description="Large context window"),
    ModelInfo(id="gemini-1.5-flash", name="Gemini 1.5 Flash", description="Balanced speed and quality"),
]

UPSTREAM_UNAVAILABLE_MARKERS = ("fetch failed", "network", "timed out", "503", "socket hang up")
UPSTREAM_UNAVAILABLE_DETAIL = "AI service temporarily unavailable. Please try again in a few seconds."


def is_upstream_unavailable(error: Exception) -> bool:
    """Should this failure be reported to the client as a temporary outage (503)?"""
    if isinstance(error, UpstreamUnavailableError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in UPSTREAM_UNAVAILABLE_MARKERS)


def parse_chat_id(chat_id: str) -> UUID:
    """Malformed ids cannot match any conversation."""
    try:
        return UUID(chat_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Chat not found")


def _store(request: Request):
    return request.app.state.store


@router.get('/api/models')
async def list_models():
    """Model catalogue with the configured default model."""
    return {
        "success": True,
        "models": [m.model_dump() for m in AVAILABLE_MODELS],
        "defaultModel": settings.default_model,
    }


@router.get('/api/auth/me')
async def me(user: SessionUser = Depends(get_session_user)):
    """Return the current session user."""
    return {"success": True, "user": user.model_dump()}


@router.get('/api/chats')
async def list_chats(request: Request, user: SessionUser = Depends(get_session_user)):
    """List the user's conversations, most recently updated first."""
    chats = _store(request).list_for_owner(user.id)
    return {"success": True, "chats": [c.model_dump(mode="json", by_alias=True) for c in chats]}


@router.post('/api/chats')
async def create_chat(
    request: Request,
    data: ConversationCreationDetails | None = None,
    user: SessionUser = Depends(get_session_user),
):
    """Create a conversation; blank title and model fall back to defaults."""
    data = data or ConversationCreationDetails()
    model = (data.model or "").strip() or settings.default_model
    chat = _store(request).create(user.id, data.title, model)
    return {"success": True, "chat": chat.model_dump(mode="json", by_alias=True)}


@router.delete('/api/chats')
async def delete_all_chats(request: Request, user: SessionUser = Depends(get_session_user)):
    """Delete every conversation of the user."""
    _store(request).delete_all(user.id)
    return {"success": True}


@router.get('/api/chats/{chat_id}')
async def get_chat(chat_id: str, request: Request, user: SessionUser = Depends(get_session_user)):
    chat = _store(request).find(parse_chat_id(chat_id), user.id)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"success": True, "chat": chat.model_dump(mode="json", by_alias=True)}


@router.patch('/api/chats/{chat_id}')
async def update_chat(
    chat_id: str,
    data: UpdateConversationDetails,
    request: Request,
    user: SessionUser = Depends(get_session_user),
):
    """Rename a conversation and/or change its model. Blank values are ignored."""
    title = (data.title or "").strip() or None
    model = (data.model or "").strip() or None
    if title is None and model is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    chat = _store(request).update_fields(parse_chat_id(chat_id), user.id, title=title, model=model)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"success": True, "chat": chat.model_dump(mode="json", by_alias=True)}


@router.delete('/api/chats/{chat_id}')
async def delete_chat(chat_id: str, request: Request, user: SessionUser = Depends(get_session_user)):
    if not _store(request).delete(parse_chat_id(chat_id), user.id):
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"success": True}


@router.post('/api/chats/{chat_id}/messages')
async def post_message(
    chat_id: str,
    data: NewMessage,
    request: Request,
    user: SessionUser = Depends(get_session_user),
):
    """Answer a user message and return the reply with the updated conversation.

    Status codes:
        400 empty message, 404 unknown conversation,
        503 upstream model temporarily unavailable, 500 anything else.
    """
    conversation_id = parse_chat_id(chat_id)
    pipeline = request.app.state.pipeline
    try:
        result = await pipeline.run_full_pipeline(user, conversation_id, data)
    except InvalidMessageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        if is_upstream_unavailable(e):
            logger.warning("Upstream model unavailable for chat %s: %s", conversation_id, e)
            raise HTTPException(status_code=503, detail=UPSTREAM_UNAVAILABLE_DETAIL)
        logger.exception("Failed to answer message in chat %s", conversation_id)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to send message")

    return {
        "success": True,
        "message": {"role": "model", "content": result.reply},
        "chat": result.conversation.model_dump(mode="json", by_alias=True),
    }
