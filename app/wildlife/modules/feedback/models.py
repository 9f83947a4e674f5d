from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.wildlife.models import Base

if TYPE_CHECKING:
    from app.wildlife.models import User
    from app.wildlife.modules.catalog.models import Creature


class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
        Index("idx_feedback_user", "user_id"),
        Index("idx_feedback_creature", "creature_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    creature_id: Mapped[int] = mapped_column(ForeignKey("creatures.id", ondelete="CASCADE"), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="feedback", lazy="joined")
    creature: Mapped["Creature"] = relationship("Creature", back_populates="feedback")

    @property
    def username(self) -> str | None:
        return self.user.username if self.user else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "creature_id": self.creature_id,
            "comment": self.comment,
            "rating": self.rating,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
