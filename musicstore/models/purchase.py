import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from musicstore.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Purchase(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "purchases"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    # Nulled when the track is removed; the snapshot columns keep the history readable
    music_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("music.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    music_name: Mapped[str] = mapped_column(String(100), nullable=False)
    artist_username: Mapped[str] = mapped_column(String(50), nullable=False)
    price_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
