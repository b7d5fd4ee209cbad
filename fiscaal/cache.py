"""
cache.py: Redis session and login-token store for Fiscaal.ai.

Namespace conventions:
  session:{token}            → {"user_id", "email"}              TTL settings.session_ttl
  login:{sha256(token)}      → {"email", "callback_url"}         TTL settings.login_token_ttl

Design:
  - Uses redis.asyncio (async client, part of redis-py 5.x: do NOT use aioredis separately)
  - Pool created once in lifespan, stored on app.state.redis
  - Helper functions take the client as a param: no module-level global state
  - Login tokens are stored hashed; the plaintext only ever exists in the e-mail
  - Logs only user_id and a short token prefix: never e-mail addresses or full tokens
"""
import hashlib
import json
import logging
import secrets
from typing import Optional

import redis.asyncio as aioredis

from fiscaal.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key prefix constants
# ---------------------------------------------------------------------------
SESSION_PREFIX = "session"
LOGIN_PREFIX = "login"


# ---------------------------------------------------------------------------
# Key builders
# ---------------------------------------------------------------------------

def make_session_key(session_token: str) -> str:
    """Build Redis key for a browser session: session:{token}"""
    return f"{SESSION_PREFIX}:{session_token}"


def make_login_key(login_token: str) -> str:
    """
    Build Redis key for a login-link token.
    Key format: login:{sha256hex}
    """
    digest = hashlib.sha256(login_token.encode("utf-8")).hexdigest()
    return f"{LOGIN_PREFIX}:{digest}"


def new_token() -> str:
    """URL-safe random token for sessions and login links."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Pool factory: called once in lifespan
# ---------------------------------------------------------------------------

async def create_redis_pool() -> aioredis.Redis:
    """
    Create and return an async Redis connection pool.
    Called once in FastAPI lifespan startup: stored on app.state.redis.
    Verifies connectivity with PING before returning.
    """
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    await client.ping()
    logger.info("Redis connection pool established at %s", settings.redis_url)
    return client


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

async def create_session(
    client: aioredis.Redis, user_id: str, email: str
) -> str:
    """Store a new session for user_id and return its token."""
    token = new_token()
    data = {"user_id": user_id, "email": email}
    await client.setex(make_session_key(token), settings.session_ttl, json.dumps(data))
    logger.info("Session created user_id=%s session=%s… ttl=%ds", user_id, token[:6], settings.session_ttl)
    return token


async def get_session_data(
    client: aioredis.Redis, session_token: str
) -> Optional[dict]:
    """
    Retrieve the identity stored for a session token.
    Returns None if the session expired, was signed out, or never existed.
    """
    raw = await client.get(make_session_key(session_token))
    if raw is None:
        return None
    return json.loads(raw)


async def delete_session(client: aioredis.Redis, session_token: str) -> None:
    """Remove a session (sign-out). Missing sessions are ignored."""
    await client.delete(make_session_key(session_token))
    logger.info("Session deleted session=%s…", session_token[:6])


# ---------------------------------------------------------------------------
# Login-link token helpers
# ---------------------------------------------------------------------------

async def store_login_token(
    client: aioredis.Redis, email: str, callback_url: str
) -> str:
    """
    Create a single-use login token bound to email.
    Returns the plaintext token: caller puts it in the e-mailed link.
    """
    token = new_token()
    data = {"email": email, "callback_url": callback_url}
    await client.setex(make_login_key(token), settings.login_token_ttl, json.dumps(data))
    logger.info("Login token issued token=%s… ttl=%ds", token[:6], settings.login_token_ttl)
    return token


async def consume_login_token(
    client: aioredis.Redis, login_token: str
) -> Optional[dict]:
    """
    Atomically fetch and delete a login token (GETDEL).
    Returns None when the token is unknown, expired, or already used.
    """
    raw = await client.getdel(make_login_key(login_token))
    if raw is None:
        logger.info("Login token rejected token=%s…", login_token[:6])
        return None
    return json.loads(raw)
