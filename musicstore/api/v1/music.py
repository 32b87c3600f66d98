"""
Public catalog endpoints: browse, search, and per-track reviews.
"""
import mimetypes
import uuid

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from musicstore.config import settings
from musicstore.core.dependencies import get_current_user, get_music_service, get_purchase_service, get_review_service
from musicstore.core.exceptions import NotFoundError, UnauthorizedError
from musicstore.models.user import User
from musicstore.schemas.common import ApiResponse, PageResponse, ok, page_of
from musicstore.schemas.music import MusicResponse
from musicstore.schemas.review import ReviewResponse
from musicstore.services.music_service import MusicService
from musicstore.services.purchase_service import PurchaseService
from musicstore.services.review_service import ReviewService

router = APIRouter(prefix="/music", tags=["music"])


@router.get("", response_model=ApiResponse[PageResponse[MusicResponse]])
async def list_music(
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    service: MusicService = Depends(get_music_service),
):
    result = await service.list_all(page, size)
    return ok("Music retrieved", page_of(result, MusicResponse))


@router.get("/search", response_model=ApiResponse[PageResponse[MusicResponse]])
async def search_music(
    q: str | None = Query(None, description="Matches track name or artist username"),
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    service: MusicService = Depends(get_music_service),
):
    result = await service.search(q, page, size)
    return ok(f"Found {result.total_elements} result(s)", page_of(result, MusicResponse))


@router.get("/genre/{genre}", response_model=ApiResponse[PageResponse[MusicResponse]])
async def list_by_genre(
    genre: str,
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    service: MusicService = Depends(get_music_service),
):
    result = await service.list_by_genre(genre, page, size)
    return ok("Music retrieved", page_of(result, MusicResponse))


@router.get("/{music_id}", response_model=ApiResponse[MusicResponse])
async def get_music(music_id: uuid.UUID, service: MusicService = Depends(get_music_service)):
    music = await service.get(music_id)
    return ok("Music retrieved", MusicResponse.model_validate(music))


@router.get("/{music_id}/reviews", response_model=ApiResponse[PageResponse[ReviewResponse]])
async def list_reviews(
    music_id: uuid.UUID,
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    reviews: ReviewService = Depends(get_review_service),
):
    result = await reviews.list_for_music(music_id, page, size)
    return ok("Reviews retrieved", page_of(result, ReviewResponse))


@router.get("/{music_id}/download")
async def download_music(
    music_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: MusicService = Depends(get_music_service),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    """Stream the audio file to its artist or to a customer who bought it."""
    music = await service.get(music_id)
    if not await purchases.can_download(music, user):
        raise UnauthorizedError("Purchase this music to download it")
    if not music.audio_file_path:
        raise NotFoundError("Audio file not found")

    data = await service.storage.download(music.audio_file_path)
    filename = music.original_file_name or music.audio_file_path.rsplit("/", 1)[-1]
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    safe_name = filename.encode("ascii", "ignore").decode().replace('"', "") or "download"
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{safe_name}"'},
    )
