"""Tests for the Wiki router."""
import pytest
from httpx import AsyncClient
from tests.conftest import get_auth_headers

PAGE = {
    "title": "Vice City",
    "category": "locations",
    "description": "The neon-lit heart of Leonida",
    "content": "# Overview\n\nBeaches.\n\n# Overview\n\nMore beaches.",
    "tags": ["leonida"],
    "details": [{"label": "State", "value": "Leonida", "type": "badge", "badgeColor": "pink"}],
}


async def _create(client: AsyncClient, **overrides) -> dict:
    resp = await client.post("/api/v1/wiki/pages", json={**PAGE, **overrides}, headers=get_auth_headers())
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_list_pages_empty(client: AsyncClient):
    """Listing is public."""
    resp = await client.get("/api/v1/wiki/pages")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 0
    assert data["degraded"] is False


@pytest.mark.asyncio
async def test_create_requires_auth(client: AsyncClient):
    resp = await client.post("/api/v1/wiki/pages", json=PAGE)
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_reader_cannot_create(client: AsyncClient):
    resp = await client.post("/api/v1/wiki/pages", json=PAGE, headers=get_auth_headers("reader"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_page(client: AsyncClient):
    page = await _create(client)
    assert page["slug"] == "vice-city"
    assert page["status"] == "published"
    assert page["createdBy"] == {"uid": "editor-1", "displayName": "Tommy Vercetti"}
    assert page["details"][0]["badgeColor"] == "pink"


@pytest.mark.asyncio
async def test_create_validation_error(client: AsyncClient):
    resp = await client.post("/api/v1/wiki/pages", json={"title": ""}, headers=get_auth_headers())
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_by_slug_and_id(client: AsyncClient):
    page = await _create(client)
    resp = await client.get("/api/v1/wiki/pages/by-slug/vice-city")
    assert resp.status_code == 200
    assert resp.json()["id"] == page["id"]
    resp = await client.get(f"/api/v1/wiki/pages/{page['id']}")
    assert resp.json()["title"] == "Vice City"


@pytest.mark.asyncio
async def test_unknown_page_404(client: AsyncClient):
    assert (await client.get("/api/v1/wiki/pages/nope")).status_code == 404
    assert (await client.get("/api/v1/wiki/pages/by-slug/nope")).status_code == 404


@pytest.mark.asyncio
async def test_update_unknown_page_returns_error_code(client: AsyncClient):
    resp = await client.patch("/api/v1/wiki/pages/nope", json={"title": "X"}, headers=get_auth_headers())
    assert resp.status_code == 404
    assert resp.json()["code"] == "VC-DB-002"


@pytest.mark.asyncio
async def test_slug_conflict_returns_409(client: AsyncClient):
    await _create(client)
    resp = await client.post(
        "/api/v1/wiki/pages", json={**PAGE, "slug": "vice-city"}, headers=get_auth_headers()
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "VC-DB-003"


@pytest.mark.asyncio
async def test_update_with_change_note(client: AsyncClient):
    page = await _create(client)
    resp = await client.patch(
        f"/api/v1/wiki/pages/{page['id']}",
        json={"description": "Sun, sand and crime", "change_note": "Tagline"},
        headers=get_auth_headers(uid="editor-2", name="Lance Vance"),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["description"] == "Sun, sand and crime"
    assert data["lastUpdatedBy"]["uid"] == "editor-2"
    assert data["createdBy"]["uid"] == "editor-1"

    revisions = (await client.get(f"/api/v1/wiki/pages/{page['id']}/revisions")).json()
    assert [r["changeDescription"] for r in revisions] == ["Tagline", "Initial creation"]


@pytest.mark.asyncio
async def test_archive_and_unarchive(client: AsyncClient):
    page = await _create(client)
    headers = get_auth_headers()
    resp = await client.post(f"/api/v1/wiki/pages/{page['id']}/archive", headers=headers)
    assert resp.json()["status"] == "archived"
    assert (await client.get("/api/v1/wiki/pages")).json()["total"] == 0
    assert (await client.get("/api/v1/wiki/pages?include_archived=true")).json()["total"] == 1

    resp = await client.post(
        f"/api/v1/wiki/pages/{page['id']}/unarchive", json={"status": "draft"}, headers=headers
    )
    assert resp.json()["status"] == "draft"


@pytest.mark.asyncio
async def test_unarchive_to_archived_rejected(client: AsyncClient):
    page = await _create(client)
    resp = await client.post(
        f"/api/v1/wiki/pages/{page['id']}/unarchive", json={"status": "archived"}, headers=get_auth_headers()
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "VC-VAL-001"


@pytest.mark.asyncio
async def test_permanent_delete_requires_admin(client: AsyncClient):
    page = await _create(client)
    resp = await client.delete(f"/api/v1/wiki/pages/{page['id']}", headers=get_auth_headers())
    assert resp.status_code == 403
    resp = await client.delete(f"/api/v1/wiki/pages/{page['id']}", headers=get_auth_headers("admin"))
    assert resp.status_code == 204
    assert (await client.get(f"/api/v1/wiki/pages/{page['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_search_and_category(client: AsyncClient):
    await _create(client)
    await _create(client, title="Tommy Vercetti", category="characters", description="", content="", tags=[])
    data = (await client.get("/api/v1/wiki/pages/search", params={"q": "LEONIDA"})).json()
    assert [p["title"] for p in data["items"]] == ["Vice City"]
    data = (await client.get("/api/v1/wiki/categories/characters")).json()
    assert [p["title"] for p in data["items"]] == ["Tommy Vercetti"]


@pytest.mark.asyncio
async def test_render_page(client: AsyncClient):
    page = await _create(client)
    data = (await client.get(f"/api/v1/wiki/pages/{page['id']}/render")).json()
    assert [e["id"] for e in data["toc"]] == ["overview", "overview-1"]
    assert '<h1 id="overview-1">' in data["html"]


@pytest.mark.asyncio
async def test_compare_and_restore_revisions(client: AsyncClient):
    page = await _create(client, content="one\n")
    headers = get_auth_headers()
    await client.patch(f"/api/v1/wiki/pages/{page['id']}", json={"content": "one\ntwo\n"}, headers=headers)
    new, old = (await client.get(f"/api/v1/wiki/pages/{page['id']}/revisions")).json()

    diff = (await client.get("/api/v1/wiki/revisions/compare", params={"old": old["id"], "new": new["id"]})).json()
    assert diff["statistics"]["lines_added"] == 1
    assert diff["changed_fields"] == ["content"]

    resp = await client.post(f"/api/v1/wiki/pages/{page['id']}/revisions/{old['id']}/restore", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["content"] == "one\n"

    resp = await client.get(f"/api/v1/wiki/revisions/{old['id']}")
    assert resp.json()["pageId"] == page["id"]


@pytest.mark.asyncio
async def test_writes_keep_working_while_primary_down(client: AsyncClient, primary):
    primary.failing = True
    page = await _create(client)
    assert page["id"].startswith("local-")
    data = (await client.get("/api/v1/wiki/pages")).json()
    assert data["degraded"] is True
    assert [p["id"] for p in data["items"]] == [page["id"]]


@pytest.mark.asyncio
async def test_drafts(client: AsyncClient):
    headers = get_auth_headers()
    assert (await client.get("/api/v1/wiki/drafts")).status_code in (401, 403)

    resp = await client.put("/api/v1/wiki/drafts/new", json={"fields": {"title": "Half-written"}}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["draftId"] == "new"

    draft = (await client.get("/api/v1/wiki/drafts/new", headers=headers)).json()
    assert draft["title"] == "Half-written"
    assert len((await client.get("/api/v1/wiki/drafts", headers=headers)).json()["items"]) == 1

    assert (await client.delete("/api/v1/wiki/drafts/new", headers=headers)).status_code == 204
    assert (await client.get("/api/v1/wiki/drafts/new", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_permanent_delete_while_primary_down_returns_503(client: AsyncClient, primary):
    page = await _create(client)
    primary.failing = True
    resp = await client.delete(f"/api/v1/wiki/pages/{page['id']}", headers=get_auth_headers("admin"))
    assert resp.status_code == 503
    assert resp.json()["code"] == "VC-DB-001"
