"""
routes.py: Login-link authentication endpoints.

POST /login                   : issue a single-use login token and e-mail the link
GET  /api/auth/callback/email : consume the token, find-or-create the user, start a session
POST /api/auth/signout        : end the session
GET  /api/auth/session        : {user: {id, email}} or {}

Sessions and login tokens live in Redis (cache.py); users in PostgreSQL (store.py).
PII protection: e-mail addresses and tokens are never logged.
"""
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fiscaal.auth import mailer
from fiscaal.auth.dependencies import get_current_user
from fiscaal.auth.schemas import SessionUser, parse_login_email
from fiscaal.cache import (
    consume_login_token,
    create_session,
    delete_session,
    store_login_token,
)
from fiscaal.config import settings
from fiscaal.database import get_db
from fiscaal.pages import safe_callback_url, templates
from fiscaal.store import get_or_create_user

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Auth"])

VERIFICATION_ERROR_URL = "/login?error=Verification"


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/login", response_class=HTMLResponse)
async def request_login_link(
    request: Request,
    email: str = Form(...),
    callbackUrl: str = Form(default="/"),
):
    """
    Send a login link to email and show the "check your e-mail" page.

    The link is valid for settings.login_token_ttl seconds and works once.
    An invalid address re-renders the form with error=EmailSignin.
    """
    callback_url = safe_callback_url(callbackUrl)
    email = parse_login_email(email)
    if email is None:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"user": None, "error": "EmailSignin", "callback_url": callback_url},
            status_code=400,
        )

    token = await store_login_token(request.app.state.redis, email, callback_url)
    query = urlencode({"token": token, "email": email})
    link = f"{settings.app_url.rstrip('/')}/api/auth/callback/email?{query}"
    await mailer.send_login_email(email, link)

    return templates.TemplateResponse(
        request, "check_email.html", {"user": None, "email": email}
    )


@router.get("/api/auth/callback/email")
async def verify_login_link(
    request: Request,
    token: str,
    email: str,
    db: AsyncSession = Depends(get_db),
) -> RedirectResponse:
    """
    Consume a login token and sign the user in.

    Unknown, expired, reused, or e-mail-mismatched tokens redirect to
    /login?error=Verification without creating a user or session.
    """
    data = await consume_login_token(request.app.state.redis, token)
    if data is None or data["email"] != normalize_email(email):
        return RedirectResponse(VERIFICATION_ERROR_URL, status_code=302)

    user = await get_or_create_user(db, data["email"])
    session_token = await create_session(request.app.state.redis, user.id, user.email)

    response = RedirectResponse(safe_callback_url(data.get("callback_url")), status_code=302)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_token,
        max_age=settings.session_ttl,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )
    logger.info("User signed in user_id=%s", user.id)
    return response


@router.post("/api/auth/signout")
async def sign_out(request: Request) -> RedirectResponse:
    """Delete the session (if any) and clear the cookie."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        await delete_session(request.app.state.redis, token)
    response = RedirectResponse("/", status_code=303)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/api/auth/session")
async def current_session(
    user: Optional[SessionUser] = Depends(get_current_user),
) -> dict:
    """Identity of the caller: an empty object for anonymous callers."""
    if user is None:
        return {}
    return {"user": user.model_dump()}
