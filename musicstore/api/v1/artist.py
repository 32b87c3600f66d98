"""
Artist endpoints: upload, edit and remove own tracks.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from musicstore.config import settings
from musicstore.core.dependencies import get_music_service, get_review_service, require_artist
from musicstore.models.user import User
from musicstore.schemas.common import ApiResponse, PageResponse, ok, page_of
from musicstore.schemas.music import MusicResponse, MusicUpdate
from musicstore.schemas.review import ReviewResponse
from musicstore.services.music_service import MusicService, UploadedFile
from musicstore.services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artist", tags=["artist"])


async def _read_upload(upload: UploadFile | None) -> UploadedFile | None:
    if upload is None:
        return None
    return UploadedFile(filename=upload.filename, content_type=upload.content_type, data=await upload.read())


@router.post("/music/upload", response_model=ApiResponse[MusicResponse], status_code=201)
async def upload_music(
    title: str = Form(""),
    price: str = Form(""),
    genre: str | None = Form(None),
    category: str = Form("Music"),
    description: str | None = Form(None),
    album_name: str | None = Form(None),
    release_year: int | None = Form(None),
    music_file: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None),
    user: User = Depends(require_artist),
    service: MusicService = Depends(get_music_service),
):
    logger.info("Music upload request from artist: %s", user.username)
    fields = {
        "name": title,
        "price": price or None,
        "genre": genre,
        "category": category,
        "description": description,
        "album_name": album_name,
        "release_year": release_year,
    }
    music = await service.create(
        fields,
        await _read_upload(music_file),
        await _read_upload(cover_image),
        uploader=user.username,
    )
    return ok("Music uploaded successfully", MusicResponse.model_validate(music))


@router.get("/music", response_model=ApiResponse[PageResponse[MusicResponse]])
async def my_music(
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    user: User = Depends(require_artist),
    service: MusicService = Depends(get_music_service),
):
    result = await service.list_by_artist(user.username, page, size)
    return ok("Music retrieved", page_of(result, MusicResponse))


@router.put("/music/{music_id}", response_model=ApiResponse[MusicResponse])
async def update_music(
    music_id: uuid.UUID,
    body: MusicUpdate,
    user: User = Depends(require_artist),
    service: MusicService = Depends(get_music_service),
):
    music = await service.update(music_id, body.model_dump(exclude_unset=True), caller=user.username)
    return ok("Music updated successfully", MusicResponse.model_validate(music))


@router.delete("/music/{music_id}", response_model=ApiResponse[None])
async def delete_music(
    music_id: uuid.UUID,
    user: User = Depends(require_artist),
    service: MusicService = Depends(get_music_service),
):
    await service.delete(music_id, caller=user.username)
    return ok("Music deleted successfully")


@router.get("/music/{music_id}/reviews", response_model=ApiResponse[PageResponse[ReviewResponse]])
async def reviews_for_my_music(
    music_id: uuid.UUID,
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    user: User = Depends(require_artist),
    reviews: ReviewService = Depends(get_review_service),
):
    result = await reviews.list_for_artist_music(music_id, user.username, page, size)
    return ok("Reviews retrieved", page_of(result, ReviewResponse))
