"""
schemas.py: Chat proxy Pydantic v2 data contracts.

Defines:
  - ChatMessage     (single transcript turn)
  - ChatRequest     (incoming POST /api/chat body)
  - ChatResponse    (answer + chatId returned to the widget)
  - TextBlock, TaxServiceReply  (upstream answering-service reply)

Wire names are camelCase (chatId) to match the browser widget; Python code
uses snake_case attributes via aliases.
"""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------

class ChatMessage(BaseModel):
    """Single turn in a chat transcript."""
    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant"]
    content: str


# ---------------------------------------------------------------------------
# POST /api/chat
# ---------------------------------------------------------------------------

class ChatRequest(BaseModel):
    """
    Incoming chat turn from the widget.

    history is the transcript BEFORE this message: the server appends the new
    user turn and the assistant answer itself.
    chat_id is only honoured for signed-in callers.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: str
    history: List[ChatMessage] = Field(default_factory=list)
    chat_id: Optional[str] = Field(default=None, alias="chatId")


class ChatResponse(BaseModel):
    """Answer text plus the chat id the widget should send with its next turn."""
    model_config = ConfigDict(populate_by_name=True)

    response: str
    chat_id: Optional[str] = Field(default=None, alias="chatId")


# ---------------------------------------------------------------------------
# Upstream answering service reply
# ---------------------------------------------------------------------------

class TextBlock(BaseModel):
    """One content block in the list-shaped upstream reply."""
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class TaxServiceReply(BaseModel):
    """
    Upstream reply body. Two shapes are accepted for `response`:
      - list of blocks:  {"response": [{"text": "..."}, ...]}
      - bare string:     {"response": "..."}
    Anything else parses to response=None and falls back to the placeholder.
    """
    model_config = ConfigDict(extra="ignore")

    response: Union[List[TextBlock], str, None] = None


__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "TextBlock",
    "TaxServiceReply",
]
