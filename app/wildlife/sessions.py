"""
Server-side sessions.

The cookie only carries a signed random session id; the session dict lives in
Redis under session:<sid> (expiring after SESSION_TTL) or, when Redis is not
available, in a process-local dict that is lost on restart and not shared
between gunicorn workers.
"""
from __future__ import annotations

import logging
import secrets
import threading
import time
from datetime import datetime, timedelta, timezone

from flask import Flask, Request, Response
from flask.json.tag import TaggedJSONSerializer
from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from redis import Redis
from redis.exceptions import RedisError
from werkzeug.datastructures import CallbackDict

from app.wildlife.constants import SESSION_CACHE_PREFIX, SESSION_TTL

logger = logging.getLogger(__name__)

_serializer = TaggedJSONSerializer()


class ServerSideSession(CallbackDict, SessionMixin):
    def __init__(self, initial: dict | None = None, sid: str | None = None, new: bool = False):
        def on_update(self):
            self.modified = True

        super().__init__(initial, on_update)
        self.sid = sid or _new_sid()
        self.new = new
        self.modified = False
        self.previous_sid: str | None = None

    def regenerate(self) -> None:
        """Issue a fresh id (on login) so a pre-auth id cannot be reused."""
        if self.previous_sid is None:
            self.previous_sid = self.sid
        self.sid = _new_sid()
        self.modified = True


def _new_sid() -> str:
    return secrets.token_urlsafe(32)


class RedisSessionStore:
    def __init__(self, client: Redis, ttl: int = SESSION_TTL):
        self.client = client
        self.ttl = ttl

    def _key(self, sid: str) -> str:
        return f"{SESSION_CACHE_PREFIX}{sid}"

    def load(self, sid: str) -> dict | None:
        try:
            raw = self.client.get(self._key(sid))
        except (RedisError, OSError) as e:
            logger.warning("Session load error: %s", e)
            return None
        if not raw:
            return None
        try:
            return _serializer.loads(raw)
        except ValueError:
            return None

    def save(self, sid: str, data: dict) -> None:
        try:
            self.client.setex(self._key(sid), self.ttl, _serializer.dumps(data))
        except (RedisError, OSError) as e:
            logger.warning("Session save error: %s", e)

    def delete(self, sid: str) -> None:
        try:
            self.client.delete(self._key(sid))
        except (RedisError, OSError) as e:
            logger.warning("Session delete error: %s", e)


class MemorySessionStore:
    def __init__(self, ttl: int = SESSION_TTL):
        self.ttl = ttl
        self._data: dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()
        self._next_sweep = time.monotonic() + ttl

    def load(self, sid: str) -> dict | None:
        with self._lock:
            entry = self._data.get(sid)
            if entry is None:
                return None
            expires_at, raw = entry
            if expires_at < time.monotonic():
                del self._data[sid]
                return None
        return _serializer.loads(raw)

    def save(self, sid: str, data: dict) -> None:
        raw = _serializer.dumps(data)
        with self._lock:
            now = time.monotonic()
            if now >= self._next_sweep:
                self._sweep(now)
            self._data[sid] = (now + self.ttl, raw)

    def delete(self, sid: str) -> None:
        with self._lock:
            self._data.pop(sid, None)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [sid for sid, (expires_at, _) in self._data.items() if expires_at < now]
        for sid in expired:
            del self._data[sid]
        self._next_sweep = now + self.ttl
        if expired:
            logger.debug("Swept %d expired sessions", len(expired))


class ServerSideSessionInterface(SessionInterface):
    salt = "wildlife-session"

    def __init__(self, store: RedisSessionStore | MemorySessionStore):
        self.store = store

    def _signer(self, app: Flask) -> Signer | None:
        if not app.secret_key:
            return None
        return Signer(app.secret_key, salt=self.salt)

    def open_session(self, app: Flask, request: Request) -> ServerSideSession | None:
        signer = self._signer(app)
        if signer is None:
            return None
        cookie = request.cookies.get(self.get_cookie_name(app))
        if not cookie:
            return ServerSideSession(new=True)
        try:
            sid = signer.unsign(cookie).decode("utf-8")
        except BadSignature:
            return ServerSideSession(new=True)
        data = self.store.load(sid)
        if data is None:
            return ServerSideSession(new=True)
        return ServerSideSession(data, sid=sid)

    def save_session(self, app: Flask, session: ServerSideSession, response: Response) -> None:  # type: ignore[override]
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if session.previous_sid:
            self.store.delete(session.previous_sid)
            session.previous_sid = None

        if not session:
            if session.modified and not session.new:
                self.store.delete(session.sid)
                response.delete_cookie(name, domain=domain, path=path)
            return

        # Sessions are rolling: every request that carries data extends the TTL.
        if not (session.modified or app.config.get("SESSION_REFRESH_EACH_REQUEST", True)):
            return

        self.store.save(session.sid, dict(session))
        signer = self._signer(app)
        if signer is None:
            return
        response.set_cookie(
            name,
            signer.sign(session.sid).decode("utf-8"),
            expires=datetime.now(timezone.utc) + app.permanent_session_lifetime,
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )


def init_sessions(app: Flask, client: Redis | None) -> ServerSideSessionInterface:
    ttl = int(app.config.get("SESSION_TTL", SESSION_TTL))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(seconds=ttl)
    if client is not None:
        store: RedisSessionStore | MemorySessionStore = RedisSessionStore(client, ttl)
        app.logger.info("Sessions stored in Redis (TTL: %s seconds)", ttl)
    else:
        store = MemorySessionStore(ttl)
        app.logger.warning("Sessions stored in process memory; not shared across workers")
    app.session_interface = ServerSideSessionInterface(store)
    return app.session_interface
