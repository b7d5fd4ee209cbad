"""
Test configuration for Fiscaal.ai tests.

Settings are read once at import time, so the environment is pointed at a
throw-away SQLite database BEFORE anything from fiscaal is imported.
Redis is replaced by InMemoryRedis and the answering service by an
httpx.MockTransport: no docker services needed.
"""
import json
import os
import tempfile
from pathlib import Path

_tmp_dir = Path(tempfile.mkdtemp(prefix="fiscaal-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir / 'fiscaal.db'}"
os.environ["DEBUG"] = "false"
os.environ["APP_URL"] = "http://test"
os.environ["TAX_SERVICE_URL"] = "http://tax-service"
os.environ["TAX_SERVICE_API_KEY"] = "test-api-key"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from fiscaal import models  # noqa: E402,F401
from fiscaal.cache import create_session  # noqa: E402
from fiscaal.chat.tax_service import create_tax_service_client  # noqa: E402
from fiscaal.config import settings  # noqa: E402
from fiscaal.database import AsyncSessionLocal, Base, async_engine  # noqa: E402
from fiscaal.main import app  # noqa: E402
from fiscaal.store import get_or_create_user  # noqa: E402


class InMemoryRedis:
    """The handful of redis.asyncio.Redis calls cache.py makes, backed by a dict."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def getdel(self, key):
        self.ttls.pop(key, None)
        return self.data.pop(key, None)

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            self.ttls.pop(key, None)
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def aclose(self):
        pass

    def expire_all(self, prefix: str) -> None:
        """Drop every key under prefix, as if its TTL ran out."""
        for key in [k for k in self.data if k.startswith(f"{prefix}:")]:
            del self.data[key]
            self.ttls.pop(key, None)


class FakeTaxService:
    """
    Stands in for the external answering service.
    Set .reply (JSON body) / .status to control the answer; .requests records calls.
    """

    def __init__(self):
        self.reply = {"response": [{"text": "Je betaalt inkomstenbelasting."}]}
        self.status = 200
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.reply)

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema per test, created from the ORM metadata."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await async_engine.dispose()


@pytest.fixture
def redis():
    return InMemoryRedis()


@pytest.fixture
def tax_service():
    return FakeTaxService()


@pytest_asyncio.fixture
async def client(db_tables, redis, tax_service):
    """Async httpx client using ASGI transport: no live server needed."""
    upstream = create_tax_service_client(transport=httpx.MockTransport(tax_service.handler))
    app.state.redis = redis
    app.state.tax_service = upstream
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    await upstream.aclose()


@pytest.fixture
def login_as(redis):
    """
    Factory: create (or reuse) the user for email, start a session for it and
    put the session cookie on the given client. Returns the SessionUser.
    """
    async def _login(ac: AsyncClient, email: str):
        async with AsyncSessionLocal() as db:
            user = await get_or_create_user(db, email)
            await db.commit()
        token = await create_session(redis, user.id, user.email)
        ac.cookies.set(settings.session_cookie_name, token)
        return user

    return _login
