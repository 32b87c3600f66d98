import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    music_id: uuid.UUID | None = None
    music_name: str
    artist_username: str
    price_paid: Decimal
    created_at: datetime | None = None
