import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from musicstore.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
CATEGORY_MAX_LENGTH = 100
GENRE_MAX_LENGTH = 100
ALBUM_MAX_LENGTH = 255


class Music(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One purchasable track listing."""

    __tablename__ = "music"

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(DESCRIPTION_MAX_LENGTH), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_file_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(CATEGORY_MAX_LENGTH), nullable=False)

    artist_username: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    album_name: Mapped[str | None] = mapped_column(String(ALBUM_MAX_LENGTH), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(GENRE_MAX_LENGTH), nullable=True, index=True)
    release_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Cached aggregate of the live review set
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), default=Decimal("0.00"), server_default="0", nullable=False
    )
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    # Moderation
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    flagged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    flagged_by_customer_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
