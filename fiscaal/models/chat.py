"""
models/chat.py: SQLAlchemy ORM model for persisted conversations.

Table: chats
One row per conversation. The transcript is an opaque JSON blob that is
replaced wholesale on every turn (previous turns + new user/assistant pair).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from fiscaal.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
TranscriptType = JSON().with_variant(JSONB(), "postgresql")


class ChatORM(Base):
    """
    ORM model for a single chat owned by a user.

    title:    first 50 characters of the first user message: never changed afterwards.
    messages: ordered list of {"role": "user"|"assistant", "content": str}.
    """
    __tablename__ = "chats"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="UUID chat identifier: returned to the client as chatId",
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Owner of the chat",
    )
    title: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    messages: Mapped[list] = mapped_column(
        TranscriptType,
        nullable=False,
        default=list,
        comment="Full transcript. Contains user text: never log.",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
