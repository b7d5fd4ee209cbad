"""
routes.py: Tax profile HTTP endpoints.

POST /api/profile  : create or fully replace the caller's profile
GET  /api/profile  : the caller's profile (all-default when never saved)

Both require a signed-in user; anonymous callers get 401 and nothing is written.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fiscaal.auth.dependencies import require_user
from fiscaal.auth.schemas import SessionUser
from fiscaal.database import get_db
from fiscaal.profile.schemas import TaxProfile
from fiscaal.store import get_profile, upsert_profile

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Profile"])


@router.post("/profile")
async def save_profile_endpoint(
    profile: TaxProfile,
    user: SessionUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Upsert keyed on user id. Omitted fields are reset, not kept."""
    await upsert_profile(db, user.id, profile)
    return {"success": True}


@router.get("/profile")
async def get_profile_endpoint(
    user: SessionUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    profile = await get_profile(db, user.id) or TaxProfile()
    return profile.model_dump(mode="json", by_alias=True)
