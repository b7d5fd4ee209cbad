"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000 UTC

Creates the three core tables:
  - users     (login-link identities, unique e-mail)
  - profiles  (one tax profile per user, typed columns)
  - chats     (one row per conversation, transcript as JSONB blob)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users table ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False, comment="UUID primary key: stored in the Redis session as user_id"),
        sa.Column("email", sa.String(length=320), nullable=False, comment="Lower-cased e-mail address the login link was sent to"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    # --- profiles table ---
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False, comment="References users.id: one-to-one relationship"),
        sa.Column("employment_type", sa.String(length=10), nullable=True),
        sa.Column("yearly_income", sa.Integer(), nullable=True),
        sa.Column("has_partner", sa.Boolean(), nullable=False),
        sa.Column("has_mortgage", sa.Boolean(), nullable=False),
        sa.Column("has_company", sa.Boolean(), nullable=False),
        sa.Column("company_type", sa.String(length=12), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_profiles_user_id"), "profiles", ["user_id"], unique=True)

    # --- chats table ---
    op.create_table(
        "chats",
        sa.Column("id", sa.String(length=36), nullable=False, comment="UUID chat identifier: returned to the client as chatId"),
        sa.Column("user_id", sa.String(length=36), nullable=False, comment="Owner of the chat"),
        sa.Column("title", sa.String(length=50), nullable=False),
        sa.Column(
            "messages",
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"),
            nullable=False,
            comment="Full transcript. Contains user text: never log.",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_chats_user_id"), "chats", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_chats_user_id"), table_name="chats")
    op.drop_table("chats")
    op.drop_index(op.f("ix_profiles_user_id"), table_name="profiles")
    op.drop_table("profiles")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
