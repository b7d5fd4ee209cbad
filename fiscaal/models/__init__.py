"""
models/__init__.py: imports all ORM models so Alembic's env.py
sees them via Base.metadata when generating migrations.

Import order matters for FK dependencies: users before profiles and chats.
"""
from fiscaal.models.user import UserORM
from fiscaal.models.profile import ProfileORM
from fiscaal.models.chat import ChatORM

__all__ = ["UserORM", "ProfileORM", "ChatORM"]
