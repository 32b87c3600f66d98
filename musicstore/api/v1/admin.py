"""
Moderation endpoints for administrators.
"""
import uuid

from fastapi import APIRouter, Depends, Query

from musicstore.config import settings
from musicstore.core.dependencies import get_music_service, get_review_service, require_admin
from musicstore.models.user import User
from musicstore.schemas.common import ApiResponse, PageResponse, ok, page_of
from musicstore.schemas.music import ModerationResponse
from musicstore.services.music_service import MusicService
from musicstore.services.review_service import ReviewService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/music/flagged", response_model=ApiResponse[PageResponse[ModerationResponse]])
async def flagged_music(
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    _admin: User = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    result = await service.list_flagged(page, size)
    return ok("Flagged music retrieved", page_of(result, ModerationResponse))


@router.post("/music/{music_id}/unflag", response_model=ApiResponse[ModerationResponse])
async def unflag_music(
    music_id: uuid.UUID,
    _admin: User = Depends(require_admin),
    service: MusicService = Depends(get_music_service),
):
    music = await service.unflag(music_id)
    return ok("Music unflagged", ModerationResponse.model_validate(music))


@router.delete("/reviews/{review_id}", response_model=ApiResponse[None])
async def remove_review(
    review_id: uuid.UUID,
    admin: User = Depends(require_admin),
    reviews: ReviewService = Depends(get_review_service),
):
    await reviews.delete_review(review_id, admin, is_admin=True)
    return ok("Review removed")
