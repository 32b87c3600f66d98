import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ReviewCreate(BaseModel):
    rating: int
    comment: str | None = None


class ReviewUpdate(ReviewCreate):
    pass


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    music_id: uuid.UUID
    customer_username: str
    rating: int
    comment: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
