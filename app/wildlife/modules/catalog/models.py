from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.wildlife.models import Base

if TYPE_CHECKING:
    from app.wildlife.modules.feedback.models import Feedback
    from app.wildlife.modules.images.models import Image


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    creatures: Mapped[list["Creature"]] = relationship("Creature", back_populates="category")


class Creature(Base):
    __tablename__ = "creatures"
    __table_args__ = (
        Index("idx_creatures_category", "category_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Required
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)

    # Descriptive
    scientific_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    habitat: Mapped[str | None] = mapped_column(Text, nullable=True)
    diet: Mapped[str | None] = mapped_column(Text, nullable=True)
    lifespan: Mapped[str | None] = mapped_column(String(100), nullable=True)
    conservation_status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fun_facts: Mapped[str | None] = mapped_column(Text, nullable=True)

    # External URL until the image is migrated, then "/images/<id>".
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    category: Mapped[Category] = relationship("Category", back_populates="creatures", lazy="joined")
    feedback: Mapped[list["Feedback"]] = relationship(
        "Feedback",
        back_populates="creature",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    image: Mapped["Image | None"] = relationship(
        "Image",
        back_populates="creature",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "scientific_name": self.scientific_name,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "description": self.description,
            "habitat": self.habitat,
            "diet": self.diet,
            "lifespan": self.lifespan,
            "conservation_status": self.conservation_status,
            "image_url": self.image_url,
            "fun_facts": self.fun_facts,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
