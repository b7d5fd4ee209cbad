"""
routes.py: Chat proxy HTTP endpoints.

POST /api/chat          : forward to the answering service → persist (signed-in only) → return
GET  /api/chat/history  : the caller's saved chats, newest first

The answering-service client is set on app.state in main.py lifespan.
Anonymous callers can chat; nothing is stored for them and chatId is always null.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fiscaal.auth.dependencies import get_current_user, require_user
from fiscaal.auth.schemas import SessionUser
from fiscaal.chat.schemas import ChatRequest, ChatResponse
from fiscaal.chat.tax_service import ask_tax_service
from fiscaal.database import get_db
from fiscaal.store import build_transcript, create_chat, list_chats, update_chat_messages

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    body: ChatRequest,
    request: Request,
    user: Optional[SessionUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ChatResponse:
    """
    Answer one chat turn.

    Flow:
      1. POST {message, history} to the answering service (TaxServiceError → 502)
      2. Signed-in caller: transcript = history + user turn + assistant turn
         - chatId given → replace that chat's messages (404 if not the caller's chat)
         - no chatId    → create a chat titled message[:50]
      3. Return {response, chatId}
    """
    answer = await ask_tax_service(request.app.state.tax_service, body.message, body.history)

    if user is None:
        return ChatResponse(response=answer, chat_id=None)

    messages = build_transcript(body.history, body.message, answer)
    if body.chat_id:
        updated = await update_chat_messages(db, body.chat_id, user.id, messages)
        if not updated:
            raise HTTPException(status_code=404, detail="Chat not found")
        chat_id = body.chat_id
    else:
        chat_id = await create_chat(db, user.id, body.message, messages)

    return ChatResponse(response=answer, chat_id=chat_id)


@router.get("/chat/history")
async def chat_history_endpoint(
    user: SessionUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Return every chat owned by the caller, most recently updated first."""
    chats = await list_chats(db, user.id)
    logger.info("Chat history request user_id=%s chats=%d", user.id, len(chats))
    return {"chats": chats}
