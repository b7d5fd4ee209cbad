"""
Server-rendered page tests: /, /login, /profile.
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_home_for_anonymous_visitor(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 200
    assert "Stel je belastingvraag in gewone taal." in response.text
    assert "Stel je eerste vraag..." in response.text
    assert "Log in om je gesprekken te bewaren." in response.text
    assert "Dit is geen juridisch advies." in response.text
    assert 'href="/login"' in response.text


@pytest.mark.asyncio
async def test_home_for_signed_in_user(client: AsyncClient, login_as) -> None:
    await login_as(client, "jan@example.nl")

    response = await client.get("/")

    assert "Uitloggen" in response.text
    assert 'href="/profile"' in response.text
    assert "Log in om je gesprekken te bewaren." not in response.text


@pytest.mark.asyncio
async def test_login_page_shows_verification_error(client: AsyncClient) -> None:
    response = await client.get("/login", params={"error": "Verification"})

    assert response.status_code == 200
    assert "verlopen of al gebruikt" in response.text


@pytest.mark.asyncio
async def test_login_page_keeps_only_local_callback(client: AsyncClient) -> None:
    local = await client.get("/login", params={"callbackUrl": "/profile"})
    remote = await client.get("/login", params={"callbackUrl": "https://evil.example"})

    assert 'name="callbackUrl" value="/profile"' in local.text
    assert "evil.example" not in remote.text


@pytest.mark.asyncio
async def test_profile_page_redirects_anonymous_to_login(client: AsyncClient) -> None:
    response = await client.get("/profile")

    assert response.status_code == 303
    assert response.headers["location"] == "/login?callbackUrl=/profile"


@pytest.mark.asyncio
async def test_profile_page_embeds_saved_profile(client: AsyncClient, login_as) -> None:
    await login_as(client, "jan@example.nl")
    await client.post("/api/profile", json={"employmentType": "zzp", "hasCompany": True, "companyType": "vof"})

    response = await client.get("/profile")

    assert response.status_code == 200
    assert "Wat is je werksituatie?" in response.text
    assert '"companyType": "vof"' in response.text
    assert '"employmentType": "zzp"' in response.text


@pytest.mark.asyncio
async def test_static_widget_script_is_served(client: AsyncClient) -> None:
    response = await client.get("/static/chat.js")

    assert response.status_code == 200
    assert "/api/chat" in response.text


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    body = (await client.get("/api/health")).json()
    assert body["status"] == "ok"
