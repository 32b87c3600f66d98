"""
Customer endpoints: reviews, moderation reports and purchases.
"""
import uuid

from fastapi import APIRouter, Depends, Query

from musicstore.config import settings
from musicstore.core.dependencies import (
    get_music_service,
    get_purchase_service,
    get_review_service,
    require_customer,
)
from musicstore.models.user import User
from musicstore.schemas.common import ApiResponse, PageResponse, ok, page_of
from musicstore.schemas.music import MusicResponse
from musicstore.schemas.purchase import PurchaseResponse
from musicstore.schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from musicstore.services.music_service import MusicService
from musicstore.services.purchase_service import PurchaseService
from musicstore.services.review_service import ReviewService

router = APIRouter(prefix="/customer", tags=["customer"])


@router.post("/music/{music_id}/reviews", response_model=ApiResponse[ReviewResponse], status_code=201)
async def add_review(
    music_id: uuid.UUID,
    body: ReviewCreate,
    user: User = Depends(require_customer),
    reviews: ReviewService = Depends(get_review_service),
):
    review = await reviews.add_review(music_id, user, body.rating, body.comment)
    return ok("Review added successfully", ReviewResponse.model_validate(review))


@router.put("/reviews/{review_id}", response_model=ApiResponse[ReviewResponse])
async def update_review(
    review_id: uuid.UUID,
    body: ReviewUpdate,
    user: User = Depends(require_customer),
    reviews: ReviewService = Depends(get_review_service),
):
    review = await reviews.update_review(review_id, user, body.rating, body.comment)
    return ok("Review updated successfully", ReviewResponse.model_validate(review))


@router.delete("/reviews/{review_id}", response_model=ApiResponse[None])
async def delete_review(
    review_id: uuid.UUID,
    user: User = Depends(require_customer),
    reviews: ReviewService = Depends(get_review_service),
):
    await reviews.delete_review(review_id, user)
    return ok("Review deleted successfully")


@router.post("/music/{music_id}/flag", response_model=ApiResponse[MusicResponse])
async def flag_music(
    music_id: uuid.UUID,
    user: User = Depends(require_customer),
    service: MusicService = Depends(get_music_service),
):
    music = await service.flag(music_id, user.id)
    return ok("Music flagged for review", MusicResponse.model_validate(music))


@router.post("/music/{music_id}/purchase", response_model=ApiResponse[PurchaseResponse], status_code=201)
async def purchase_music(
    music_id: uuid.UUID,
    user: User = Depends(require_customer),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    purchase = await purchases.purchase(music_id, user)
    return ok("Purchase completed", PurchaseResponse.model_validate(purchase))


@router.get("/purchases", response_model=ApiResponse[PageResponse[PurchaseResponse]])
async def my_purchases(
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    user: User = Depends(require_customer),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    result = await purchases.list_for_customer(user, page, size)
    return ok("Purchases retrieved", page_of(result, PurchaseResponse))
