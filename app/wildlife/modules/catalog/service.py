from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_, select

from app.wildlife.constants import CREATURES_PER_PAGE
from app.wildlife.modules.catalog.models import Category, Creature
from app.wildlife.modules.catalog.seed_data import SAMPLE_CATEGORIES, SAMPLE_CREATURES
from app.wildlife.modules.feedback.models import Feedback

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


CREATURE_TEXT_FIELDS = (
    "scientific_name",
    "description",
    "habitat",
    "diet",
    "lifespan",
    "conservation_status",
    "image_url",
    "fun_facts",
)


class CatalogErrorCode(Enum):
    MISSING_FIELDS = "missing_fields"
    UNKNOWN_CATEGORY = "unknown_category"
    DUPLICATE_CATEGORY = "duplicate_category"


class CatalogError(Exception):
    def __init__(self, message: str, code: CatalogErrorCode):
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass
class Page:
    creatures: list[Creature] = field(default_factory=list)
    total: int = 0
    pages: int = 0


@dataclass
class SeedResult:
    categories: int = 0
    creatures: int = 0


# ---------- Categories ----------

def get_all_categories(s: "Session") -> list[Category]:
    return list(s.execute(select(Category).order_by(Category.name)).scalars())


def get_category_by_id(s: "Session", category_id: int) -> Category | None:
    return s.get(Category, category_id)


def create_category(s: "Session", name: str | None, description: str | None = None) -> Category:
    name = (name or "").strip()
    if not name:
        raise CatalogError("Category name is required", CatalogErrorCode.MISSING_FIELDS)
    if s.execute(select(Category.id).where(Category.name == name)).first():
        raise CatalogError(f'Category "{name}" already exists', CatalogErrorCode.DUPLICATE_CATEGORY)
    cat = Category(name=name, description=(description or "").strip())
    s.add(cat)
    s.flush()
    return cat


def get_category_count(s: "Session") -> int:
    return int(s.execute(select(func.count(Category.id))).scalar() or 0)


# ---------- Creatures ----------

def get_all_creatures(s: "Session", category_id: int | None = None) -> list[Creature]:
    stmt = select(Creature).order_by(Creature.name)
    if category_id:
        stmt = stmt.where(Creature.category_id == category_id)
    return list(s.execute(stmt).scalars())


def get_creature_by_id(s: "Session", creature_id: int) -> Creature | None:
    return s.get(Creature, creature_id)


def search_creatures(s: "Session", query: str | None) -> list[Creature]:
    """Case-insensitive substring match on name, description and scientific name."""
    query = (query or "").strip()
    if not query:
        return []
    pattern = f"%{query}%"
    stmt = (
        select(Creature)
        .where(
            or_(
                Creature.name.ilike(pattern),
                Creature.description.ilike(pattern),
                Creature.scientific_name.ilike(pattern),
            )
        )
        .order_by(Creature.name)
    )
    return list(s.execute(stmt).scalars())


def get_creature_count(s: "Session") -> int:
    return int(s.execute(select(func.count(Creature.id))).scalar() or 0)


def get_creatures_by_category(
    s: "Session", category_id: int, page: int = 1, limit: int = CREATURES_PER_PAGE
) -> Page:
    page = max(int(page or 1), 1)
    creatures = list(
        s.execute(
            select(Creature)
            .where(Creature.category_id == category_id)
            .order_by(Creature.name)
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars()
    )
    total = int(
        s.execute(select(func.count(Creature.id)).where(Creature.category_id == category_id)).scalar() or 0
    )
    return Page(creatures=creatures, total=total, pages=math.ceil(total / limit) if limit else 0)


def _apply_payload(creature: Creature, payload: dict) -> None:
    for key in CREATURE_TEXT_FIELDS:
        setattr(creature, key, (payload.get(key) or "").strip() or None)


def _require_creature_fields(s: "Session", payload: dict) -> tuple[str, int]:
    name = (payload.get("name") or "").strip()
    try:
        category_id = int(payload.get("category_id") or 0)
    except (TypeError, ValueError):
        category_id = 0
    if not name or not category_id:
        raise CatalogError("Name and category are required", CatalogErrorCode.MISSING_FIELDS)
    if s.get(Category, category_id) is None:
        raise CatalogError("Category not found", CatalogErrorCode.UNKNOWN_CATEGORY)
    return name, category_id


def create_creature(s: "Session", payload: dict) -> Creature:
    name, category_id = _require_creature_fields(s, payload)
    creature = Creature(name=name, category_id=category_id)
    _apply_payload(creature, payload)
    s.add(creature)
    s.flush()
    return creature


def update_creature(s: "Session", creature: Creature, payload: dict) -> Creature:
    name, category_id = _require_creature_fields(s, payload)
    creature.name = name
    creature.category_id = category_id
    _apply_payload(creature, payload)
    s.flush()
    return creature


def delete_creature(s: "Session", creature_id: int) -> bool:
    """
    Delete a creature together with its feedback and image. Returns False when
    it does not exist (a repeated delete is a no-op).
    """
    creature = s.get(Creature, creature_id)
    if creature is None:
        return False
    s.delete(creature)
    s.flush()
    return True


# ---------- Sample data ----------

def _creature_from_sample(sample: dict, category_id: int) -> Creature:
    creature = Creature(name=sample["name"], category_id=category_id)
    _apply_payload(creature, sample)
    return creature


def seed_sample_data(s: "Session", reset: bool = False) -> SeedResult:
    """
    reset=True clears feedback, creatures and categories and loads the sample
    catalog; otherwise only categories/creatures missing by name are added.
    """
    result = SeedResult()
    if reset:
        s.execute(delete(Feedback))
        for creature in s.execute(select(Creature)).scalars():
            s.delete(creature)
        s.flush()
        s.execute(delete(Category))
        s.expire_all()

    category_ids: dict[str, int] = {}
    for sample in SAMPLE_CATEGORIES:
        cat = s.execute(select(Category).where(Category.name == sample["name"])).scalar_one_or_none()
        if cat is None:
            cat = Category(name=sample["name"], description=sample["description"])
            s.add(cat)
            s.flush()
            result.categories += 1
        category_ids[cat.name] = cat.id

    existing = set(s.execute(select(Creature.name)).scalars())
    for sample in SAMPLE_CREATURES:
        if sample["name"] in existing or sample["category"] not in category_ids:
            continue
        s.add(_creature_from_sample(sample, category_ids[sample["category"]]))
        result.creatures += 1
    s.flush()
    return result
