"""
Known-tag endpoints used by the frontend's autocomplete.
"""

from fastapi import APIRouter, Depends

from ...models.requests import TagAddRequest
from ...models.responses import TagListResponse
from ...services.log_service import LogService
from ..dependencies import get_log_service

router = APIRouter()


@router.get("/tags", response_model=TagListResponse, tags=["tags"])
async def list_tags(log_service: LogService = Depends(get_log_service)):
    """List known tags, including the built-in default."""
    return TagListResponse(tags=await log_service.list_tags())


@router.post("/tags", response_model=TagListResponse, tags=["tags"])
async def add_tag(
    request: TagAddRequest,
    log_service: LogService = Depends(get_log_service),
):
    """Register a tag (trimmed and lowercased) and return the full set."""
    return TagListResponse(tags=await log_service.add_tag(request.tag))
