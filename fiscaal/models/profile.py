"""
models/profile.py: SQLAlchemy ORM model for user tax profiles.

Table: profiles
One-to-one with users (user_id unique index). Every save replaces all
columns: see store.upsert_profile().
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fiscaal.database import Base


class ProfileORM(Base):
    """
    ORM model for a user's self-reported tax situation.

    employment_type: 'employed', 'zzp' or 'both': mirrors EmploymentType enum.
    company_type:    'eenmanszaak', 'vof' or 'bv': only meaningful when has_company.
    yearly_income:   whole euros, as typed by the user.
    """
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        unique=True,     # One profile per user
        comment="References users.id: one-to-one relationship",
    )
    employment_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    yearly_income: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    has_partner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_mortgage: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_company: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    company_type: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
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
