"""
store.py: Data access facade for Fiscaal.ai.

Provides a consistent, high-level API for persisting and retrieving domain objects.
All routes use these functions: no route touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - Uses flush() (not commit()): the get_db() dependency handles commit / rollback
  - Logs only user_id / chat_id: never message text, e-mail addresses, or income
  - Returns domain Pydantic objects or plain dicts (not ORM instances) where callers
    only read, so routes stay persistence-agnostic
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fiscaal.auth.schemas import SessionUser
from fiscaal.chat.schemas import ChatMessage
from fiscaal.models.chat import ChatORM
from fiscaal.models.profile import ProfileORM
from fiscaal.models.user import UserORM
from fiscaal.profile.schemas import TaxProfile

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50


# ---------------------------------------------------------------------------
# User operations
# ---------------------------------------------------------------------------

async def get_or_create_user(db: AsyncSession, email: str) -> SessionUser:
    """
    Return the user for email, creating it on first login.
    email must already be normalised (stripped, lower-cased) by the caller.
    """
    result = await db.execute(select(UserORM).where(UserORM.email == email))
    orm = result.scalar_one_or_none()
    if orm is None:
        orm = UserORM(email=email)
        db.add(orm)
        await db.flush()
        logger.info("Created user user_id=%s", orm.id)
    return SessionUser(id=orm.id, email=orm.email)


# ---------------------------------------------------------------------------
# Profile operations
# ---------------------------------------------------------------------------

async def get_profile(db: AsyncSession, user_id: str) -> Optional[TaxProfile]:
    """
    Retrieve the profile for user_id.
    Returns None if the user never saved one.
    """
    result = await db.execute(
        select(ProfileORM).where(ProfileORM.user_id == user_id)
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return TaxProfile(
        employment_type=orm.employment_type,
        yearly_income=orm.yearly_income,
        has_partner=orm.has_partner,
        has_mortgage=orm.has_mortgage,
        has_company=orm.has_company,
        company_type=orm.company_type,
    )


async def upsert_profile(db: AsyncSession, user_id: str, profile: TaxProfile) -> None:
    """
    Create or fully replace the profile for user_id.
    Every column is overwritten: fields the caller left out were already
    defaulted by TaxProfile, so nothing from the previous save survives.
    """
    fields = profile.model_dump(mode="json")

    result = await db.execute(
        select(ProfileORM).where(ProfileORM.user_id == user_id)
    )
    orm = result.scalar_one_or_none()

    if orm is None:
        orm = ProfileORM(user_id=user_id, **fields)
        db.add(orm)
        action = "created"
    else:
        for name, value in fields.items():
            setattr(orm, name, value)
        action = "replaced"

    await db.flush()
    logger.info("Profile %s user_id=%s", action, user_id)


# ---------------------------------------------------------------------------
# Chat operations
# ---------------------------------------------------------------------------

def build_transcript(
    history: List[ChatMessage], message: str, answer: str
) -> List[dict]:
    """Previous turns followed by the new user turn and the assistant answer."""
    return [m.model_dump() for m in history] + [
        {"role": "user", "content": message},
        {"role": "assistant", "content": answer},
    ]


async def create_chat(
    db: AsyncSession,
    user_id: str,
    first_message: str,
    messages: List[dict],
) -> str:
    """
    Persist a new chat titled after the first TITLE_LENGTH characters of
    first_message. Returns the new chat id.
    """
    orm = ChatORM(
        user_id=user_id,
        title=first_message[:TITLE_LENGTH],
        messages=messages,
    )
    db.add(orm)
    await db.flush()
    logger.info("Created chat chat_id=%s user_id=%s turns=%d", orm.id, user_id, len(messages))
    return orm.id


async def update_chat_messages(
    db: AsyncSession,
    chat_id: str,
    user_id: str,
    messages: List[dict],
) -> bool:
    """
    Replace the transcript of an existing chat owned by user_id.
    id and title are left untouched.
    Returns False if no such chat exists for this user (caller raises 404).
    """
    result = await db.execute(
        select(ChatORM).where(ChatORM.id == chat_id, ChatORM.user_id == user_id)
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        return False

    orm.messages = messages  # new list object: SQLAlchemy marks the JSON column dirty
    await db.flush()
    logger.info("Updated chat chat_id=%s user_id=%s turns=%d", chat_id, user_id, len(messages))
    return True


async def list_chats(db: AsyncSession, user_id: str) -> List[dict]:
    """
    Retrieve all chats owned by user_id, most recently updated first.
    Returns empty list if the user has no saved chats.
    """
    result = await db.execute(
        select(ChatORM)
        .where(ChatORM.user_id == user_id)
        .order_by(ChatORM.updated_at.desc())
    )
    return [_chat_to_dict(row) for row in result.scalars().all()]


def _chat_to_dict(orm: ChatORM) -> dict:
    return {
        "id": orm.id,
        "userId": orm.user_id,
        "title": orm.title,
        "messages": orm.messages,
        "createdAt": orm.created_at.isoformat(),
        "updatedAt": orm.updated_at.isoformat(),
    }
