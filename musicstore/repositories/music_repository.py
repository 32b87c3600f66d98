import logging
import uuid

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from musicstore.core.exceptions import StorageError
from musicstore.models.music import Music
from musicstore.models.purchase import Purchase
from musicstore.models.review import Review
from musicstore.repositories.base import BaseRepository, Page

logger = logging.getLogger(__name__)


def _newest_first(stmt):
    return stmt.order_by(Music.created_at.desc(), Music.id)


class MusicRepository(BaseRepository):
    async def find_by_id(self, music_id: uuid.UUID) -> Music | None:
        try:
            result = await self.session.execute(select(Music).where(Music.id == music_id))
        except SQLAlchemyError as e:
            raise StorageError("Failed to load music") from e
        return result.scalar_one_or_none()

    async def find_all(self, page: int, size: int) -> Page[Music]:
        return await self._paginate(_newest_first(select(Music)), page, size)

    async def find_by_genre(self, genre: str, page: int, size: int) -> Page[Music]:
        stmt = select(Music).where(func.lower(Music.genre) == genre.lower())
        return await self._paginate(_newest_first(stmt), page, size)

    async def find_by_artist(self, artist_username: str, page: int, size: int) -> Page[Music]:
        stmt = select(Music).where(Music.artist_username == artist_username)
        return await self._paginate(_newest_first(stmt), page, size)

    async def find_flagged(self, page: int, size: int) -> Page[Music]:
        stmt = select(Music).where(Music.is_flagged.is_(True)).order_by(Music.flagged_at.desc(), Music.id)
        return await self._paginate(stmt, page, size)

    async def search_by_name_or_artist(self, query: str, page: int, size: int) -> Page[Music]:
        """Case-insensitive substring match on the track name OR the artist username."""
        pattern = f"%{_escape_like(query.lower())}%"
        stmt = select(Music).where(
            or_(
                func.lower(Music.name).like(pattern, escape="\\"),
                func.lower(Music.artist_username).like(pattern, escape="\\"),
            )
        )
        return await self._paginate(_newest_first(stmt), page, size)

    async def save(self, music: Music) -> Music:
        try:
            self.session.add(music)
            await self.session.flush()
            await self.session.refresh(music)
        except SQLAlchemyError as e:
            logger.error("Failed to save music '%s'", music.name, exc_info=True)
            raise StorageError("Failed to save music") from e
        return music

    async def delete_by_id(self, music_id: uuid.UUID) -> None:
        """Remove the record, its reviews, and detach purchases within the current transaction."""
        try:
            await self.session.execute(delete(Review).where(Review.music_id == music_id))
            await self.session.execute(
                update(Purchase).where(Purchase.music_id == music_id).values(music_id=None)
            )
            await self.session.execute(delete(Music).where(Music.id == music_id))
            await self.session.flush()
        except SQLAlchemyError as e:
            raise StorageError("Failed to delete music") from e

    async def rollback(self) -> None:
        await self.session.rollback()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
