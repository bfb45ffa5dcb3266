"""
News Router - Articles with archive/unarchive and optional revisions
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from auth import CurrentEditor, require_admin, require_editor
from content import NewsArticle
from markdown_render import render_markdown
from models import ContentStatus
from services import ContentServices, get_content_services

router = APIRouter(prefix="/api/v1/news", tags=["news"])


# ── Schemas ──────────────────────────────────────────────────

class ArticleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    slug: Optional[str] = Field(None, max_length=200)
    excerpt: str = ""
    content: str = ""
    category: str = "news"
    image_url: Optional[str] = None
    author: str = ""
    status: ContentStatus = ContentStatus.PUBLISHED
    featured: bool = False


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    slug: Optional[str] = Field(None, min_length=1, max_length=200)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    author: Optional[str] = None
    status: Optional[ContentStatus] = None
    featured: Optional[bool] = None


class UnarchiveRequest(BaseModel):
    status: ContentStatus = ContentStatus.PUBLISHED


def _article_out(article: NewsArticle) -> Dict[str, Any]:
    return article.model_dump(by_alias=True, mode="json")


# ── Articles ─────────────────────────────────────────────────

@router.get("/articles")
async def list_articles(
    include_archived: bool = False,
    featured: Optional[bool] = None,
    services: ContentServices = Depends(get_content_services),
):
    articles = await services.news.list_all(include_archived=include_archived)
    if featured is not None:
        articles = [a for a in articles if a.featured == featured]
    return {
        "total": len(articles),
        "degraded": not services.breaker.available,
        "items": [_article_out(a) for a in articles],
    }


@router.get("/articles/search")
async def search_articles(
    q: str = Query(..., min_length=1, max_length=200),
    services: ContentServices = Depends(get_content_services),
):
    articles = await services.news.search(q)
    return {"query": q, "total": len(articles), "items": [_article_out(a) for a in articles]}


@router.get("/articles/by-slug/{slug}")
async def get_article_by_slug(slug: str, services: ContentServices = Depends(get_content_services)):
    article = await services.news.get_by_slug(slug)
    if article is None:
        raise HTTPException(404, "Article not found")
    return _article_out(article)


@router.get("/categories/{category}")
async def list_category(category: str, services: ContentServices = Depends(get_content_services)):
    articles = await services.news.list_by_category(category)
    return {"category": category, "total": len(articles), "items": [_article_out(a) for a in articles]}


@router.get("/articles/{article_id}")
async def get_article(article_id: str, services: ContentServices = Depends(get_content_services)):
    article = await services.news.get_by_id(article_id)
    if article is None:
        raise HTTPException(404, "Article not found")
    return _article_out(article)


@router.get("/articles/{article_id}/render")
async def render_article(article_id: str, services: ContentServices = Depends(get_content_services)):
    article = await services.news.get_by_id(article_id)
    if article is None:
        raise HTTPException(404, "Article not found")
    return {"id": article.id, "title": article.title, **render_markdown(article.content).to_dict()}


@router.post("/articles", status_code=201)
async def create_article(
    body: ArticleCreate,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    article_id = await services.news.create(body.model_dump(exclude_none=True), editor.identity)
    return _article_out(await services.news.get_by_id(article_id))


@router.patch("/articles/{article_id}")
async def update_article(
    article_id: str,
    body: ArticleUpdate,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    article = await services.news.update(article_id, body.model_dump(exclude_unset=True), editor.identity)
    return _article_out(article)


@router.post("/articles/{article_id}/archive")
async def archive_article(
    article_id: str,
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    article = await services.news.soft_delete(article_id, editor.identity)
    return {"status": article.status.value, "id": article.id}


@router.post("/articles/{article_id}/unarchive")
async def unarchive_article(
    article_id: str,
    body: UnarchiveRequest = UnarchiveRequest(),
    services: ContentServices = Depends(get_content_services),
    editor: CurrentEditor = Depends(require_editor),
):
    article = await services.news.unarchive(article_id, editor.identity, body.status)
    return {"status": article.status.value, "id": article.id}


@router.delete("/articles/{article_id}", status_code=204)
async def delete_article_permanently(
    article_id: str,
    services: ContentServices = Depends(get_content_services),
    admin: CurrentEditor = Depends(require_admin),
):
    await services.news.permanently_delete(article_id)


@router.get("/articles/{article_id}/revisions")
async def article_revisions(article_id: str, services: ContentServices = Depends(get_content_services)):
    """Only available when news revisioning is enabled."""
    revisions = await services.news.revisions(article_id)
    return [r.model_dump(by_alias=True, mode="json") for r in revisions]
