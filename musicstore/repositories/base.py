import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from musicstore.core.exceptions import StorageError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0


class BaseRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _paginate(self, stmt: Select, page: int, size: int) -> Page:
        try:
            count_result = await self.session.execute(
                select(func.count()).select_from(stmt.order_by(None).subquery())
            )
            total = count_result.scalar() or 0
            result = await self.session.execute(stmt.offset(page * size).limit(size))
            items = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to query records") from e
        return Page(items=items, page=page, size=size, total_elements=total)
