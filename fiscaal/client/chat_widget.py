"""
chat_widget.py: Client-side chat state machine.

Same behaviour as static/chat.js, for Python callers (terminal chat, tests):
  - transcript and chatId live only in memory
  - empty / whitespace-only input and sends while a request is in flight are no-ops
  - the user turn is appended before the request goes out
  - any transport failure becomes a fixed apology turn instead of an exception
"""
import logging
from typing import List, Optional

import httpx

from fiscaal.chat.schemas import ChatMessage

logger = logging.getLogger(__name__)

APOLOGY = "Er ging iets mis. Probeer opnieuw."


class ChatWidget:
    """
    One conversation against POST /api/chat.

    http must be an AsyncClient whose base_url points at the Fiscaal.ai server
    (and which carries the session cookie when the user is signed in).
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http
        self.messages: List[ChatMessage] = []
        self.chat_id: Optional[str] = None
        self.loading = False

    async def send(self, text: str) -> Optional[ChatMessage]:
        """
        Submit text as the next user turn.

        Returns the assistant turn that was appended, or None when the send was
        ignored (blank input or a request already in flight).
        """
        if not text.strip() or self.loading:
            return None

        history = list(self.messages)
        self.messages.append(ChatMessage(role="user", content=text))
        self.loading = True
        try:
            reply = await self._request(text, history)
        finally:
            self.loading = False

        self.messages.append(reply)
        return reply

    async def _request(self, text: str, history: List[ChatMessage]) -> ChatMessage:
        body = {
            "message": text,
            "history": [m.model_dump() for m in history],
            "chatId": self.chat_id,
        }
        try:
            res = await self._http.post("/api/chat", json=body)
            res.raise_for_status()
            data = res.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Chat request failed: %s", type(exc).__name__)
            return ChatMessage(role="assistant", content=APOLOGY)

        if not isinstance(data, dict):
            logger.warning("Chat reply was not a JSON object")
            return ChatMessage(role="assistant", content=APOLOGY)

        if data.get("chatId"):
            self.chat_id = data["chatId"]
        answer = data.get("response")
        if not isinstance(answer, str) or not answer:
            answer = APOLOGY
        return ChatMessage(role="assistant", content=answer)
