import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class MusicResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    image_url: str | None = None
    original_file_name: str | None = None
    category: str
    artist_username: str
    album_name: str | None = None
    genre: str | None = None
    release_year: int | None = None
    average_rating: Decimal = Decimal("0.00")
    total_reviews: int = 0
    is_flagged: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ModerationResponse(MusicResponse):
    flagged_at: datetime | None = None
    flagged_by_customer_id: uuid.UUID | None = None


class MusicUpdate(BaseModel):
    # Unknown keys (artist_username included) are dropped rather than rejected.
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    category: str | None = None
    genre: str | None = None
    album_name: str | None = None
    release_year: int | None = None
