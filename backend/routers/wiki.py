"""
Wiki Router - Pages, categories, search, revisions and drafts
Reads are public; writes need an editor token, permanent delete needs admin.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from auth import CurrentEditor, require_admin, require_editor
from content import WikiPage, WikiPageDetail
from markdown_render import render_markdown
from models import ContentStatus
from services import ContentServices, get_content_services

router = APIRouter(prefix="/api/v1/wiki", tags=["wiki"])


# ── Schemas ──────────────────────────────────────────────────

class WikiPageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    category: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=200)
    description: str = ""
    subcategory: Optional[str] = None
    content: str = ""
    image_url: Optional[str] = None
    gallery_images: List[str] = []
    related_pages: List[str] = []
    tags: List[str] = []
    details: List[WikiPageDetail] = []
    status: ContentStatus = ContentStatus.PUBLISHED
    featured: bool = False


class WikiPageUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    category: Optional[str] = None
    slug: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    subcategory: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    gallery_images: Optional[List[str]] = None
    related_pages: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    details: Optional[List[WikiPageDetail]] = None
    status: Optional[ContentStatus] = None
    featured: Optional[bool] = None
    change_note: Optional[str] = Field(None, max_length=500)


class UnarchiveRequest(BaseModel):
    status: ContentStatus = ContentStatus.PUBLISHED


class DraftBody(BaseModel):
    fields: Dict[str, Any] = {}


# ── Helpers ──────────────────────────────────────────────────

def _page_out(page: WikiPage) -> Dict[str, Any]:
    return page.model_dump(by_alias=True, mode="json")


async def _get_page_or_404(services: ContentServices, page_id: str) -> WikiPage:
    page = await services.wiki.get_by_id(page_id)
    if page is None:
        raise HTTPException(404, "Page not found")
    return page


# ── Pages ────────────────────────────────────────────────────

@router.get("/pages")
async def list_pages(
    include_archived: bool = False,
    services: ContentServices = Depends(get_content_services),
):
    pages = await services.wiki.list_all(include_archived=include_archived)
    return {
        "total": len(pages),
        "degraded": not services.breaker.available,
        "items": [_page_out(p) for p in pages],
    }


@router.get("/pages/search")
async def search_pages(
    q: str = Query(..., min_length=1, max_length=200),
    services: ContentServices = Depends(get_content_services),
):
    pages = await services.wiki.search(q)
    return {"query": q, "total": len(pages), "items": [_page_out(p) for p in pages]}


@router.get("/pages/by-slug/{slug}")
async def get_page_by_slug(slug: str, services: ContentServices = Depends(get_content_services)):
    page = await services.wiki.get_by_slug(slug)
    if page is None:
        raise HTTPException(404, "Page not found")
    return _page_out(page)


@router.get("/categories/{category}")
async def list_category(category: str, services: ContentServices = Depends(get_content_services)):
    pages = await services.wiki.list_by_category(category)
    return {"category": category, "total": len(pages), "items": [_page_out(p) for p in pages]}


@router.get("/pages/{page_id}")
async def get_page(page_id: str, services: ContentServices = Depends(get_content_services)):
    return _page_out(await _get_page_or_404(services, page_id))


@router.get("/pages/{page_id}/render")
async def render_page(page_id: str, services: ContentServices = Depends(get_content_services)):
    page = await _get_page_or_404(services, page_id)
    return {"id": page.id, "title": page.title, **render_markdown(page.content).to_dict()}


@router.post("/pages", status_code=201)
async def create_page(
    body: WikiPageCreate,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    page_id = await services.wiki.create(body.model_dump(exclude_none=True), editor.identity)
    page = await services.wiki.get_by_id(page_id)
    return _page_out(page)


@router.patch("/pages/{page_id}")
async def update_page(
    page_id: str,
    body: WikiPageUpdate,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    changes = body.model_dump(exclude_unset=True)
    note = changes.pop("change_note", None)
    page = await services.wiki.update(page_id, changes, editor.identity, note)
    return _page_out(page)


@router.post("/pages/{page_id}/archive")
async def archive_page(
    page_id: str,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    page = await services.wiki.soft_delete(page_id, editor.identity)
    return {"status": page.status.value, "id": page.id}


@router.post("/pages/{page_id}/unarchive")
async def unarchive_page(
    page_id: str,
    body: UnarchiveRequest = UnarchiveRequest(),
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    page = await services.wiki.unarchive(page_id, editor.identity, body.status)
    return {"status": page.status.value, "id": page.id}


@router.delete("/pages/{page_id}", status_code=204)
async def delete_page_permanently(
    page_id: str,
    services: ContentServices = Depends(get_content_services),
    admin: CurrentEditor = Depends(require_admin),
):
    await services.wiki.permanently_delete(page_id)


# ── Revisions ────────────────────────────────────────────────

@router.get("/pages/{page_id}/revisions")
async def page_revisions(page_id: str, services: ContentServices = Depends(get_content_services)):
    revisions = await services.wiki.revisions(page_id)
    return [r.model_dump(by_alias=True, mode="json") for r in revisions]


@router.post("/pages/{page_id}/revisions/{revision_id}/restore")
async def restore_revision(
    page_id: str,
    revision_id: str,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    page = await services.wiki.restore_revision(page_id, revision_id, editor.identity)
    return _page_out(page)


@router.get("/revisions/compare")
async def compare_revisions(
    old: str = Query(..., min_length=1),
    new: str = Query(..., min_length=1),
    services: ContentServices = Depends(get_content_services),
):
    diff = await services.wiki_ledger.compare(old, new)
    return diff.to_dict()


@router.get("/revisions/{revision_id}")
async def get_revision(revision_id: str, services: ContentServices = Depends(get_content_services)):
    revision = await services.wiki_ledger.get_by_id(revision_id)
    if revision is None:
        raise HTTPException(404, "Revision not found")
    return revision.model_dump(by_alias=True, mode="json")


# ── Drafts ───────────────────────────────────────────────────

@router.get("/drafts")
async def list_drafts(
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    return {"items": services.drafts.list()}


@router.get("/drafts/{draft_id}")
async def get_draft(
    draft_id: str,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    draft = services.drafts.get(draft_id)
    if draft is None:
        raise HTTPException(404, "Draft not found")
    return draft


@router.put("/drafts/{draft_id}")
async def save_draft(
    draft_id: str,
    body: DraftBody,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    return services.drafts.save(draft_id, body.fields)


@router.delete("/drafts/{draft_id}", status_code=204)
async def clear_draft(
    draft_id: str,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    if not services.drafts.clear(draft_id):
        raise HTTPException(404, "Draft not found")
