import logging
import uuid

from musicstore.config import settings
from musicstore.core.exceptions import ValidationError
from musicstore.models.music import Music
from musicstore.models.purchase import Purchase
from musicstore.models.user import User, UserRole
from musicstore.repositories.base import Page
from musicstore.repositories.purchase_repository import PurchaseRepository
from musicstore.services.music_service import MusicService
from musicstore.services.validation import validate_page

logger = logging.getLogger(__name__)


class PurchaseService:
    def __init__(self, repository: PurchaseRepository, music_service: MusicService):
        self.repository = repository
        self.music_service = music_service

    async def purchase(self, music_id: uuid.UUID, customer: User) -> Purchase:
        music = await self.music_service.get(music_id)
        if music.is_flagged:
            raise ValidationError("This music is under review and cannot be purchased right now")
        if await self.repository.find(customer.id, music_id):
            raise ValidationError("You have already purchased this music")

        purchase = Purchase(
            customer_id=customer.id,
            music_id=music.id,
            music_name=music.name,
            artist_username=music.artist_username,
            price_paid=music.price,
        )
        purchase = await self.repository.save(purchase)
        logger.info("Customer %s purchased music %s for %s", customer.username, music_id, music.price)
        return purchase

    async def list_for_customer(
        self, customer: User, page: int = 0, size: int = settings.DEFAULT_PAGE_SIZE
    ) -> Page[Purchase]:
        validate_page(page, size, self.music_service.max_page_size)
        return await self.repository.find_by_customer(customer.id, page, size)

    async def can_download(self, music: Music, user: User) -> bool:
        if user.role == UserRole.ARTIST:
            return music.artist_username == user.username
        if user.role == UserRole.CUSTOMER:
            return await self.repository.find(user.id, music.id) is not None
        return user.role == UserRole.ADMIN
