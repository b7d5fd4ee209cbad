"""
Login-link flow tests: POST /login → e-mailed link → GET callback → session cookie.

The mailer is monkeypatched to capture links instead of talking SMTP.
"""
from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from fiscaal.auth import mailer
from fiscaal.cache import make_login_key
from fiscaal.config import settings
from fiscaal.database import AsyncSessionLocal
from fiscaal.models.user import UserORM


@pytest.fixture
def outbox(monkeypatch):
    """Captured (recipient, link) pairs instead of real e-mail."""
    sent: list[tuple[str, str]] = []

    async def fake_send(recipient: str, link: str) -> None:
        sent.append((recipient, link))

    monkeypatch.setattr(mailer, "send_login_email", fake_send)
    return sent


def _path(link: str) -> str:
    parts = urlsplit(link)
    return f"{parts.path}?{parts.query}"


async def _user_count() -> int:
    async with AsyncSessionLocal() as db:
        return (await db.execute(select(func.count()).select_from(UserORM))).scalar_one()


async def _request_link(client: AsyncClient, outbox, email: str, callback: str = "/") -> str:
    response = await client.post("/login", data={"email": email, "callbackUrl": callback})
    assert response.status_code == 200
    return _path(outbox[-1][1])


# ---------------------------------------------------------------------------
# Requesting a link
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_sends_link_and_shows_check_email(client: AsyncClient, outbox, redis) -> None:
    response = await client.post("/login", data={"email": "  Jan@Example.NL ", "callbackUrl": "/"})

    assert response.status_code == 200
    assert "Check je email" in response.text
    assert "jan@example.nl" in response.text

    recipient, link = outbox[0]
    assert recipient == "jan@example.nl"
    assert link.startswith("http://test/api/auth/callback/email?")
    query = parse_qs(urlsplit(link).query)
    assert query["email"] == ["jan@example.nl"]

    key = make_login_key(query["token"][0])
    assert key in redis.data
    assert redis.ttls[key] == settings.login_token_ttl
    # plaintext token never stored
    assert query["token"][0] not in "".join(redis.data)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email",
    ["geen-email", "jan@@example.nl", "a@b@example.nl", "jan@example..nl", "jan @example.nl", "@example.nl"],
)
async def test_invalid_email_rerenders_form(client: AsyncClient, outbox, redis, email) -> None:
    response = await client.post("/login", data={"email": email, "callbackUrl": "/"})

    assert response.status_code == 400
    assert "Controleer je e-mailadres" in response.text
    assert outbox == []
    assert redis.data == {}


# ---------------------------------------------------------------------------
# Consuming a link
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_callback_creates_user_and_session(client: AsyncClient, outbox) -> None:
    path = await _request_link(client, outbox, "jan@example.nl", callback="/profile")

    response = await client.get(path)

    assert response.status_code == 302
    assert response.headers["location"] == "/profile"
    assert settings.session_cookie_name in response.cookies
    assert await _user_count() == 1

    session = (await client.get("/api/auth/session")).json()
    assert session["user"]["email"] == "jan@example.nl"
    assert session["user"]["id"]


@pytest.mark.asyncio
async def test_link_works_only_once(client: AsyncClient, outbox) -> None:
    path = await _request_link(client, outbox, "jan@example.nl")
    await client.get(path)

    again = await client.get(path)

    assert again.status_code == 302
    assert again.headers["location"] == "/login?error=Verification"


@pytest.mark.asyncio
async def test_expired_link_is_rejected(client: AsyncClient, outbox, redis) -> None:
    path = await _request_link(client, outbox, "jan@example.nl")
    redis.expire_all("login")

    response = await client.get(path)

    assert response.headers["location"] == "/login?error=Verification"
    assert await _user_count() == 0


@pytest.mark.asyncio
async def test_link_for_other_email_is_rejected(client: AsyncClient, outbox) -> None:
    path = await _request_link(client, outbox, "jan@example.nl")
    tampered = path.replace("jan%40example.nl", "piet%40example.nl")

    response = await client.get(tampered)

    assert response.headers["location"] == "/login?error=Verification"
    assert await _user_count() == 0


@pytest.mark.asyncio
async def test_second_login_reuses_user(client: AsyncClient, outbox) -> None:
    await client.get(await _request_link(client, outbox, "jan@example.nl"))
    first_id = (await client.get("/api/auth/session")).json()["user"]["id"]

    await client.get(await _request_link(client, outbox, "JAN@example.nl"))
    second_id = (await client.get("/api/auth/session")).json()["user"]["id"]

    assert first_id == second_id
    assert await _user_count() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("callback", ["https://evil.example/", "//evil.example/", "profile"])
async def test_off_site_callback_becomes_root(client: AsyncClient, outbox, callback) -> None:
    path = await _request_link(client, outbox, "jan@example.nl", callback=callback)

    response = await client.get(path)

    assert response.status_code == 302
    assert response.headers["location"] == "/"


# ---------------------------------------------------------------------------
# Session endpoint + sign-out
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_anonymous_session_is_empty(client: AsyncClient) -> None:
    assert (await client.get("/api/auth/session")).json() == {}


@pytest.mark.asyncio
async def test_signout_ends_session(client: AsyncClient, login_as, redis) -> None:
    await login_as(client, "jan@example.nl")
    assert (await client.get("/api/auth/session")).json()["user"]

    response = await client.post("/api/auth/signout")

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert not any(k.startswith("session:") for k in redis.data)
    assert (await client.get("/api/auth/session")).json() == {}
