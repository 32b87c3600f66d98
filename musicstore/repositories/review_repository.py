import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from musicstore.core.exceptions import StorageError
from musicstore.models.review import Review
from musicstore.repositories.base import BaseRepository, Page


class ReviewRepository(BaseRepository):
    async def find_by_id(self, review_id: uuid.UUID) -> Review | None:
        try:
            result = await self.session.execute(
                select(Review).where(Review.id == review_id, Review.is_deleted.is_(False))
            )
        except SQLAlchemyError as e:
            raise StorageError("Failed to load review") from e
        return result.scalar_one_or_none()

    async def find_live_by_customer(self, music_id: uuid.UUID, customer_id: uuid.UUID) -> Review | None:
        try:
            result = await self.session.execute(
                select(Review).where(
                    Review.music_id == music_id,
                    Review.customer_id == customer_id,
                    Review.is_deleted.is_(False),
                )
            )
        except SQLAlchemyError as e:
            raise StorageError("Failed to load review") from e
        return result.scalar_one_or_none()

    async def find_by_music(self, music_id: uuid.UUID, page: int, size: int) -> Page[Review]:
        stmt = (
            select(Review)
            .where(Review.music_id == music_id, Review.is_deleted.is_(False))
            .order_by(Review.created_at.desc(), Review.id)
        )
        return await self._paginate(stmt, page, size)

    async def rating_summary(self, music_id: uuid.UUID) -> tuple[Decimal | None, int]:
        """Mean rating and count over the live reviews of a track."""
        try:
            result = await self.session.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(
                    Review.music_id == music_id, Review.is_deleted.is_(False)
                )
            )
        except SQLAlchemyError as e:
            raise StorageError("Failed to aggregate reviews") from e
        average, count = result.one()
        if average is None:
            return None, 0
        return Decimal(str(average)), int(count)

    async def save(self, review: Review) -> Review:
        try:
            self.session.add(review)
            await self.session.flush()
            await self.session.refresh(review)
        except SQLAlchemyError as e:
            raise StorageError("Failed to save review") from e
        return review
