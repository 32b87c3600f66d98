import logging
import uuid

from musicstore.config import settings
from musicstore.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from musicstore.models.review import Review
from musicstore.models.user import User
from musicstore.repositories.base import Page
from musicstore.repositories.review_repository import ReviewRepository
from musicstore.services.music_service import MusicService
from musicstore.services.validation import validate_page, validate_review_fields

module_logger = logging.getLogger(__name__)


class ReviewService:
    """Customer reviews; every mutation refreshes the track's cached rating."""

    def __init__(
        self,
        repository: ReviewRepository,
        music_service: MusicService,
        logger: logging.Logger | None = None,
    ):
        self.repository = repository
        self.music_service = music_service
        self.logger = logger or module_logger

    async def _get(self, review_id: uuid.UUID) -> Review:
        review = await self.repository.find_by_id(review_id)
        if review is None:
            raise NotFoundError(f"Review {review_id} not found")
        return review

    async def add_review(self, music_id: uuid.UUID, customer: User, rating: int, comment: str | None = None) -> Review:
        await self.music_service.get(music_id)

        violations = validate_review_fields(rating, comment)
        if violations:
            raise ValidationError(violations=violations)
        if await self.repository.find_live_by_customer(music_id, customer.id):
            raise ValidationError("You have already reviewed this music")

        review = Review(
            music_id=music_id,
            customer_id=customer.id,
            customer_username=customer.username,
            rating=rating,
            comment=comment,
            is_deleted=False,
        )
        review = await self.repository.save(review)
        await self.music_service.recompute_rating(music_id, self.repository)
        self.logger.info("Customer %s reviewed music %s (%d/5)", customer.username, music_id, rating)
        return review

    async def update_review(
        self, review_id: uuid.UUID, customer: User, rating: int, comment: str | None = None
    ) -> Review:
        review = await self._get(review_id)
        if review.customer_id != customer.id:
            raise UnauthorizedError("You can only edit your own reviews")

        violations = validate_review_fields(rating, comment)
        if violations:
            raise ValidationError(violations=violations)

        review.rating = rating
        review.comment = comment
        review = await self.repository.save(review)
        await self.music_service.recompute_rating(review.music_id, self.repository)
        self.logger.info("Customer %s edited review %s", customer.username, review_id)
        return review

    async def delete_review(self, review_id: uuid.UUID, caller: User, is_admin: bool = False) -> None:
        review = await self._get(review_id)
        if not is_admin and review.customer_id != caller.id:
            raise UnauthorizedError("You can only delete your own reviews")

        review.is_deleted = True
        await self.repository.save(review)
        await self.music_service.recompute_rating(review.music_id, self.repository)
        self.logger.info("Review %s removed by %s", review_id, caller.username)

    async def list_for_music(
        self, music_id: uuid.UUID, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE
    ) -> Page[Review]:
        await self.music_service.get(music_id)
        validate_page(page, size, self.music_service.max_page_size)
        return await self.repository.find_by_music(music_id, page, size)

    async def list_for_artist_music(
        self, music_id: uuid.UUID, artist_username: str, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE
    ) -> Page[Review]:
        await self.music_service.get_owned(music_id, artist_username)
        validate_page(page, size, self.music_service.max_page_size)
        return await self.repository.find_by_music(music_id, page, size)
