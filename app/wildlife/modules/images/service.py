"""
Image service: cache-first read-through over the images table.

Reads check Redis first and fall back to the database, repopulating the cache
on a miss. Writes upsert the row and invalidate (not refresh) the cache entry,
so the next read reloads from the database. Entries otherwise expire after the
cache TTL; any write that bypasses save_image_with_cache_invalidation() is
visible once the TTL runs out.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from app.wildlife.constants import DEFAULT_IMAGE_CONTENT_TYPE, IMAGE_URL_PREFIX
from app.wildlife.modules.images.models import Image

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.wildlife.cache import ImageCache

SOURCE_CACHE = "cache"
SOURCE_DATABASE = "database"


class ImageNotFound(LookupError):
    """No stored image for the requested creature."""

    def __init__(self, creature_id: int):
        super().__init__(f"Image not found for creature {creature_id}")
        self.creature_id = creature_id


@dataclass(frozen=True)
class ImageResult:
    data: bytes
    content_type: str
    source: str


def get_image_with_cache(s: "Session", cache: "ImageCache | None", creature_id: int) -> ImageResult:
    if cache is not None:
        cached = cache.get(creature_id)
        if cached is not None:
            return ImageResult(data=cached.data, content_type=cached.content_type, source=SOURCE_CACHE)

    row = s.execute(
        select(Image.image_data, Image.content_type, Image.file_size, Image.updated_at).where(
            Image.creature_id == creature_id
        )
    ).one_or_none()
    if row is None:
        raise ImageNotFound(creature_id)

    data = bytes(row.image_data)
    if cache is not None:
        cache.set(
            creature_id,
            data,
            row.content_type,
            file_size=row.file_size,
            updated_at=row.updated_at,
        )
    return ImageResult(data=data, content_type=row.content_type, source=SOURCE_DATABASE)


def _dialect_insert(s: "Session"):
    name = s.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert


def upsert_image(
    s: "Session",
    creature_id: int,
    data: bytes,
    content_type: str | None = None,
    original_url: str | None = None,
) -> int:
    """Insert or replace the image row for a creature; returns the image id."""
    content_type = content_type or DEFAULT_IMAGE_CONTENT_TYPE
    now = datetime.utcnow()
    insert = _dialect_insert(s)
    if insert is not None:
        stmt = insert(Image).values(
            creature_id=creature_id,
            image_data=data,
            content_type=content_type,
            original_url=original_url,
            file_size=len(data),
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Image.creature_id],
            set_={
                "image_data": stmt.excluded.image_data,
                "content_type": stmt.excluded.content_type,
                "original_url": stmt.excluded.original_url,
                "file_size": stmt.excluded.file_size,
                "updated_at": now,
            },
        ).returning(Image.id)
        image_id = s.execute(stmt).scalar_one()
        # The ORM identity map may hold a stale copy of the replaced row.
        s.expire_all()
        return image_id

    img = s.execute(select(Image).where(Image.creature_id == creature_id)).scalar_one_or_none()
    if img is None:
        img = Image(creature_id=creature_id, created_at=now)
        s.add(img)
    img.image_data = data
    img.content_type = content_type
    img.original_url = original_url
    img.file_size = len(data)
    img.updated_at = now
    s.flush()
    return img.id


def save_image_with_cache_invalidation(
    s: "Session",
    cache: "ImageCache | None",
    creature_id: int,
    data: bytes,
    content_type: str | None = None,
    original_url: str | None = None,
) -> int:
    """
    Upsert the image, commit, then drop the cached copy.
    """
    image_id = upsert_image(s, creature_id, data, content_type, original_url)
    s.commit()
    if cache is not None:
        cache.invalidate(creature_id)
    return image_id


def image_exists(s: "Session", creature_id: int) -> bool:
    return s.execute(select(Image.id).where(Image.creature_id == creature_id)).first() is not None


def image_url_for(creature_id: int) -> str:
    return f"{IMAGE_URL_PREFIX}{creature_id}"


def compute_etag(data: bytes) -> str:
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def get_image_count(s: "Session") -> int:
    return int(s.execute(select(func.count(Image.id))).scalar() or 0)
