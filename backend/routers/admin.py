"""
Admin Router - Store status, connectivity probe, breaker control
"""

from fastapi import APIRouter, Depends, Query

from auth import CurrentEditor, require_admin
from logging_system import get_log_buffer
from services import ContentServices, get_content_services

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/status")
async def store_status(
    recent: int = Query(20, ge=0, le=200),
    services: ContentServices = Depends(get_content_services),
    admin: CurrentEditor = Depends(require_admin),
):
    """Availability mode, breaker state, cache sizes and recent store warnings."""
    return {
        **services.status(),
        "recent_warnings": get_log_buffer().get_recent(recent, logger_prefix="vice-city") if recent else [],
    }


@router.post("/connectivity")
async def check_connectivity(
    services: ContentServices = Depends(get_content_services),
    admin: CurrentEditor = Depends(require_admin),
):
    result = await services.probe.check_connectivity()
    return {"available": result.available, "error": result.error, **result.details}


@router.post("/breaker/reset")
async def reset_breaker(
    services: ContentServices = Depends(get_content_services),
    admin: CurrentEditor = Depends(require_admin),
):
    services.breaker.reset()
    return services.breaker.snapshot()
