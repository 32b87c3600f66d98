import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from musicstore.core.exceptions import StorageError
from musicstore.models.purchase import Purchase
from musicstore.repositories.base import BaseRepository, Page


class PurchaseRepository(BaseRepository):
    async def find(self, customer_id: uuid.UUID, music_id: uuid.UUID) -> Purchase | None:
        try:
            result = await self.session.execute(
                select(Purchase).where(Purchase.customer_id == customer_id, Purchase.music_id == music_id)
            )
        except SQLAlchemyError as e:
            raise StorageError("Failed to load purchase") from e
        return result.scalars().first()

    async def find_by_customer(self, customer_id: uuid.UUID, page: int, size: int) -> Page[Purchase]:
        stmt = (
            select(Purchase)
            .where(Purchase.customer_id == customer_id)
            .order_by(Purchase.created_at.desc(), Purchase.id)
        )
        return await self._paginate(stmt, page, size)

    async def save(self, purchase: Purchase) -> Purchase:
        try:
            self.session.add(purchase)
            await self.session.flush()
            await self.session.refresh(purchase)
        except SQLAlchemyError as e:
            raise StorageError("Failed to save purchase") from e
        return purchase
