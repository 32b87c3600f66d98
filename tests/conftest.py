import uuid
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from musicstore.core.exceptions import StorageError
from musicstore.core.security import hash_password
from musicstore.db.base import Base
from musicstore.db.engine import build_engine
from musicstore.db.session import get_db
from musicstore.main import create_app
from musicstore.models.music import Music
from musicstore.models.user import User, UserRole
from musicstore.repositories.music_repository import MusicRepository
from musicstore.repositories.review_repository import ReviewRepository
from musicstore.services.music_service import MusicService, UploadedFile
from musicstore.services.review_service import ReviewService
from musicstore.services.storage_service import get_storage

PASSWORD = "testpass123"


class FakeStorage:
    """In-memory stand-in for the upload handler."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.uploads: list[tuple[str, str]] = []
        self.fail_uploads_after: int | None = None

    async def upload(self, file_data: bytes, key: str, content_type: str) -> str:
        if self.fail_uploads_after is not None and len(self.uploads) >= self.fail_uploads_after:
            raise StorageError("Failed to store uploaded file")
        self.files[key] = file_data
        self.uploads.append((key, content_type))
        return key

    async def download(self, key: str) -> bytes:
        if key not in self.files:
            raise StorageError("Failed to read stored file")
        return self.files[key]

    async def delete(self, key: str) -> None:
        self.files.pop(key, None)


def audio_file(data: bytes = b"ID3 fake audio", content_type: str = "audio/mpeg") -> UploadedFile:
    return UploadedFile(filename="track.mp3", content_type=content_type, data=data)


def cover_file(data: bytes = b"\x89PNG fake image", content_type: str = "image/png") -> UploadedFile:
    return UploadedFile(filename="cover.png", content_type=content_type, data=data)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Reset the login rate limiter between tests to prevent cross-test pollution."""
    from musicstore.core.rate_limit import limiter
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    # SQLite for testing (no PostgreSQL needed)
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", poolclass=NullPool)

    import musicstore.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def music_service(db_session: AsyncSession, storage: FakeStorage) -> MusicService:
    return MusicService(MusicRepository(db_session), storage)


@pytest.fixture
def review_service(db_session: AsyncSession, music_service: MusicService) -> ReviewService:
    return ReviewService(ReviewRepository(db_session), music_service)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, storage: FakeStorage) -> AsyncIterator[AsyncClient]:
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _make_user(db: AsyncSession, username: str, role: UserRole) -> User:
    user = User(
        id=uuid.uuid4(),
        username=username,
        email=f"{username}@test.com",
        hashed_password=hash_password(PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def artist_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "maya99", UserRole.ARTIST)


@pytest_asyncio.fixture
async def other_artist(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "rival_artist", UserRole.ARTIST)


@pytest_asyncio.fixture
async def customer_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "listener1", UserRole.CUSTOMER)


@pytest_asyncio.fixture
async def second_customer(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "listener2", UserRole.CUSTOMER)


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "moderator", UserRole.ADMIN)


async def login_headers(client: AsyncClient, username: str) -> dict:
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": PASSWORD},
    )
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def artist_headers(client: AsyncClient, artist_user: User) -> dict:
    return await login_headers(client, artist_user.username)


@pytest_asyncio.fixture
async def customer_headers(client: AsyncClient, customer_user: User) -> dict:
    return await login_headers(client, customer_user.username)


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient, admin_user: User) -> dict:
    return await login_headers(client, admin_user.username)


@pytest_asyncio.fixture
async def track(music_service: MusicService, artist_user: User) -> Music:
    return await music_service.create(
        {"name": "Blue Horizon", "price": Decimal("1.99"), "category": "Music", "genre": "Ambient"},
        audio_file(),
        cover_file(),
        uploader=artist_user.username,
    )
