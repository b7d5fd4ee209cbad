"""
dependencies.py: Identity resolution for request handlers.

Handlers receive the signed-in user explicitly:
    user: Optional[SessionUser] = Depends(get_current_user)   # chat: identity optional
    user: SessionUser = Depends(require_user)                 # profile: identity required

The session token travels in an HttpOnly cookie; the identity behind it lives in
Redis (cache.py). A token whose session expired resolves to None, not an error.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from fiscaal.auth.schemas import SessionUser
from fiscaal.cache import get_session_data
from fiscaal.config import settings

logger = logging.getLogger(__name__)


async def get_current_user(request: Request) -> Optional[SessionUser]:
    """Return the user behind the session cookie, or None for anonymous callers."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    data = await get_session_data(request.app.state.redis, token)
    if data is None:
        logger.debug("Stale session cookie session=%s…", token[:6])
        return None
    return SessionUser(id=data["user_id"], email=data["email"])


async def require_user(
    user: Optional[SessionUser] = Depends(get_current_user),
) -> SessionUser:
    """Like get_current_user, but anonymous callers get 401 before the handler runs."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
