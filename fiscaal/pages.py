"""
pages.py: Server-rendered pages (Jinja2).

GET /        : hero, chat widget, footer
GET /login   : e-mail form for a login link
GET /profile : tax profile form, pre-filled; anonymous visitors go to /login

The widgets themselves are static JavaScript (static/chat.js, static/profile.js);
pages only hand them their initial state.
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from fiscaal.auth.dependencies import get_current_user
from fiscaal.auth.schemas import SessionUser
from fiscaal.database import get_db
from fiscaal.profile.schemas import TaxProfile
from fiscaal.store import get_profile

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Pages"])

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def safe_callback_url(url: Optional[str]) -> str:
    """Only same-site relative paths are allowed as post-login targets."""
    if not url or not url.startswith("/") or url.startswith("//") or "\\" in url:
        return "/"
    return url


@router.get("/", response_class=HTMLResponse)
async def home_page(
    request: Request,
    user: Optional[SessionUser] = Depends(get_current_user),
):
    return templates.TemplateResponse(request, "index.html", {"user": user})


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    error: Optional[str] = None,
    callbackUrl: Optional[str] = None,
    user: Optional[SessionUser] = Depends(get_current_user),
):
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "user": user,
            "error": error,
            "callback_url": safe_callback_url(callbackUrl),
        },
    )


@router.get("/profile", response_class=HTMLResponse)
async def profile_page(
    request: Request,
    user: Optional[SessionUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user is None:
        return RedirectResponse("/login?callbackUrl=/profile", status_code=303)
    profile = await get_profile(db, user.id) or TaxProfile()
    return templates.TemplateResponse(
        request,
        "profile.html",
        {"user": user, "profile": profile.model_dump(mode="json", by_alias=True)},
    )
