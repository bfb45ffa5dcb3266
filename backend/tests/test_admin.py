"""Tests for health and the admin router."""
import logging

import pytest
from httpx import AsyncClient
from tests.conftest import get_auth_headers


@pytest.mark.asyncio
async def test_health_healthy(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["mode"] == "primary"


@pytest.mark.asyncio
async def test_health_degraded(client: AsyncClient, primary):
    primary.failing = True
    data = (await client.get("/health")).json()
    assert data["status"] == "degraded"
    assert data["mode"] == "fallback"
    assert "primary store offline" in data["primary_store"]


@pytest.mark.asyncio
async def test_status_requires_admin(client: AsyncClient):
    resp = await client.get("/api/v1/admin/status", headers=get_auth_headers())
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_status_reports_cache_and_warnings(client: AsyncClient, primary):
    primary.failing = True
    await client.post(
        "/api/v1/wiki/pages", json={"title": "Prawn Island", "category": "locations"}, headers=get_auth_headers()
    )
    data = (await client.get("/api/v1/admin/status", headers=get_auth_headers("admin"))).json()
    assert data["mode"] == "fallback"
    assert data["breaker"]["state"] == "open"
    assert data["local_cache"]["local_wiki_pages"] == 1
    assert data["news_revisions"] is False
    assert isinstance(data["recent_warnings"], list)


@pytest.mark.asyncio
async def test_connectivity_check_and_breaker_reset(client: AsyncClient, primary, breaker):
    headers = get_auth_headers("admin")
    primary.failing = True
    data = (await client.post("/api/v1/admin/connectivity", headers=headers)).json()
    assert data["available"] is False
    assert data["collection"] == "news-articles"

    primary.failing = False
    data = (await client.post("/api/v1/admin/breaker/reset", headers=headers)).json()
    assert data["state"] == "closed"
    assert breaker.available
