"""
Redis-backed cache for image bytes (and the session store, see sessions.py).

The client is created once per process in init_cache() and kept in
app.extensions["redis_client"]. When REDIS_URL is unset or Redis does not
answer at boot, the client is None and every cache operation degrades to a
miss / no-op. Cache errors are logged and never raised to callers.
"""
from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime

from flask import Flask, current_app
from redis import Redis
from redis.exceptions import RedisError

from app.wildlife.constants import IMAGE_CACHE_PREFIX, IMAGE_CACHE_TTL

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 2


@dataclass(frozen=True)
class CachedImage:
    data: bytes
    content_type: str
    file_size: int | None = None
    updated_at: str | None = None


def init_cache(app: Flask) -> Redis | None:
    url = (app.config.get("REDIS_URL") or "").strip()
    client: Redis | None = None
    if not url:
        app.logger.info("REDIS_URL not set; image caching disabled, sessions kept in memory")
    else:
        try:
            client = Redis.from_url(
                url,
                socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
                socket_timeout=CONNECT_TIMEOUT_SECONDS,
            )
            client.ping()
            app.logger.info(
                "Redis initialized - image caching enabled (TTL: %s seconds)",
                app.config.get("IMAGE_CACHE_TTL", IMAGE_CACHE_TTL),
            )
        except (RedisError, OSError) as e:
            app.logger.warning("Redis unavailable (%s); image caching disabled, sessions kept in memory", e)
            client = None
    app.extensions["redis_client"] = client
    return client


def close_cache(app: Flask) -> None:
    client: Redis | None = app.extensions.get("redis_client")
    if client is None:
        return
    try:
        client.close()
    except (RedisError, OSError) as e:
        app.logger.warning("Redis close error: %s", e)


def redis_client(app: Flask | None = None) -> Redis | None:
    app = app or current_app
    return app.extensions.get("redis_client")


def ping(client: Redis | None) -> bool:
    if client is None:
        return False
    try:
        return bool(client.ping())
    except (RedisError, OSError):
        return False


def _image_key(creature_id: int) -> str:
    return f"{IMAGE_CACHE_PREFIX}{creature_id}"


class ImageCache:
    def __init__(self, client: Redis | None, ttl: int = IMAGE_CACHE_TTL):
        self.client = client
        self.ttl = ttl

    @property
    def available(self) -> bool:
        return self.client is not None

    def get(self, creature_id: int) -> CachedImage | None:
        if self.client is None:
            return None
        try:
            raw = self.client.get(_image_key(creature_id))
            if not raw:
                return None
            parsed = json.loads(raw)
            return CachedImage(
                data=base64.b64decode(parsed["data"]),
                content_type=parsed["contentType"],
                file_size=parsed.get("fileSize"),
                updated_at=parsed.get("updatedAt"),
            )
        except (RedisError, OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Redis get error (creature_id=%s): %s", creature_id, e)
            return None

    def set(
        self,
        creature_id: int,
        data: bytes,
        content_type: str,
        *,
        file_size: int | None = None,
        updated_at: datetime | None = None,
    ) -> bool:
        if self.client is None:
            return False
        payload = json.dumps(
            {
                "data": base64.b64encode(data).decode("ascii"),
                "contentType": content_type,
                "fileSize": file_size if file_size is not None else len(data),
                "updatedAt": updated_at.isoformat() if updated_at else None,
            }
        )
        try:
            self.client.setex(_image_key(creature_id), self.ttl, payload)
            return True
        except (RedisError, OSError) as e:
            logger.warning("Redis set error (creature_id=%s): %s", creature_id, e)
            return False

    def invalidate(self, creature_id: int) -> bool:
        if self.client is None:
            return False
        try:
            self.client.delete(_image_key(creature_id))
            return True
        except (RedisError, OSError) as e:
            logger.warning("Redis delete error (creature_id=%s): %s", creature_id, e)
            return False

    def stats(self) -> dict | None:
        """Count of cached images and Redis memory use, or None if Redis is unreachable."""
        if self.client is None:
            return None
        try:
            cached = sum(1 for _ in self.client.scan_iter(match=f"{IMAGE_CACHE_PREFIX}*", count=500))
            info = self.client.info("memory")
            return {
                "cachedImages": cached,
                "memoryUsed": info.get("used_memory_human", "unknown"),
            }
        except (RedisError, OSError) as e:
            logger.warning("Redis stats error: %s", e)
            return None


def image_cache(app: Flask | None = None) -> ImageCache:
    app = app or current_app
    return ImageCache(redis_client(app), ttl=int(app.config.get("IMAGE_CACHE_TTL", IMAGE_CACHE_TTL)))
