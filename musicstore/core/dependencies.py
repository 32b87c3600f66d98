import logging
import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from musicstore.core.exceptions import AuthenticationError, UnauthorizedError
from musicstore.core.security import decode_token
from musicstore.db.session import get_db
from musicstore.models.user import User, UserRole
from musicstore.repositories.music_repository import MusicRepository
from musicstore.repositories.purchase_repository import PurchaseRepository
from musicstore.repositories.review_repository import ReviewRepository
from musicstore.services.music_service import MusicService
from musicstore.services.purchase_service import PurchaseService
from musicstore.services.review_service import ReviewService
from musicstore.services.storage_service import StorageService, get_storage

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise AuthenticationError()
    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    try:
        user_id = uuid.UUID(payload.get("sub"))
    except (ValueError, TypeError):
        raise AuthenticationError()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    return user


async def require_artist(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ARTIST:
        raise UnauthorizedError("Artist access required")
    return user


async def require_customer(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.CUSTOMER:
        raise UnauthorizedError("Customer access required")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise UnauthorizedError("Admin access required")
    return user


def get_music_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> MusicService:
    return MusicService(MusicRepository(db), storage, logger=logging.getLogger("musicstore.catalog"))


def get_review_service(
    db: AsyncSession = Depends(get_db),
    music_service: MusicService = Depends(get_music_service),
) -> ReviewService:
    return ReviewService(ReviewRepository(db), music_service, logger=logging.getLogger("musicstore.reviews"))


def get_purchase_service(
    db: AsyncSession = Depends(get_db),
    music_service: MusicService = Depends(get_music_service),
) -> PurchaseService:
    return PurchaseService(PurchaseRepository(db), music_service)
