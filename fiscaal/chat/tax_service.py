"""
tax_service.py: HTTP client for the external tax-answering service.

Components:
  create_tax_service_client(): httpx.AsyncClient bound to TAX_SERVICE_URL + X-API-Key
  extract_answer()           : reply body → display text (explicit shape contract)
  ask_tax_service()          : POST {message, history} to /api/chat

The client is created once in main.py lifespan and passed as a parameter
(connection pool reuse across requests).

No HTTPException anywhere: this is pure service logic, HTTP layer is routes.py.
TaxServiceError is mapped to 502 by the global handler in main.py.
"""
import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from fiscaal.chat.schemas import ChatMessage, TaxServiceReply
from fiscaal.config import settings

logger = logging.getLogger(__name__)

# Shown when the service replied but without usable text
FALLBACK_ANSWER = "Geen antwoord"

CHAT_PATH = "/api/chat"


class TaxServiceError(Exception):
    """The answering service could not be reached or did not return JSON."""


def create_tax_service_client(
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build the shared outbound client. Caller closes it on shutdown."""
    return httpx.AsyncClient(
        base_url=settings.tax_service_url,
        headers={
            "Content-Type": "application/json",
            "X-API-Key": settings.tax_service_api_key,
        },
        timeout=settings.tax_service_timeout,
        transport=transport,
    )


def extract_answer(payload: Any) -> str:
    """
    Turn an upstream reply body into display text.

    Accepted shapes for payload["response"]:
      1. [{"text": "X"}, ...]  → "X"   (first block only)
      2. "X"                   → "X"
    Missing, null, empty, or any other shape → FALLBACK_ANSWER.
    """
    try:
        reply = TaxServiceReply.model_validate(payload)
    except ValidationError:
        logger.warning("Unrecognised tax service reply shape: using fallback answer")
        return FALLBACK_ANSWER

    if isinstance(reply.response, list):
        if reply.response and reply.response[0].text:
            return reply.response[0].text
        return FALLBACK_ANSWER
    if reply.response:
        return reply.response
    return FALLBACK_ANSWER


async def ask_tax_service(
    client: httpx.AsyncClient,
    message: str,
    history: List[ChatMessage],
) -> str:
    """
    Forward a question plus prior transcript to the answering service.

    Raises TaxServiceError on transport errors, non-2xx status, or a non-JSON body.
    No retries.
    """
    body = {
        "message": message,
        "history": [m.model_dump() for m in history],
    }
    try:
        res = await client.post(CHAT_PATH, json=body)
        res.raise_for_status()
        payload = res.json()
    except httpx.HTTPStatusError as exc:
        logger.error("Tax service returned HTTP %d", exc.response.status_code)
        raise TaxServiceError(f"Tax service returned HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.error("Tax service request failed: %s", type(exc).__name__)
        raise TaxServiceError(f"Tax service unreachable: {type(exc).__name__}") from exc
    except ValueError as exc:
        logger.error("Tax service returned a non-JSON body")
        raise TaxServiceError("Tax service returned a non-JSON body") from exc

    logger.info("Tax service answered history_turns=%d", len(history))
    return extract_answer(payload)
