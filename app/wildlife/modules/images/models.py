from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.wildlife.constants import DEFAULT_IMAGE_CONTENT_TYPE
from app.wildlife.models import Base

if TYPE_CHECKING:
    from app.wildlife.modules.catalog.models import Creature


class Image(Base):
    """
    Binary image payload, one row per creature. Writes go through an upsert
    keyed on creature_id; updated_at moves on every replace.
    """

    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    creature_id: Mapped[int] = mapped_column(
        ForeignKey("creatures.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    image_data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    content_type: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_IMAGE_CONTENT_TYPE)
    original_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    creature: Mapped["Creature"] = relationship("Creature", back_populates="image")
