import time

import pytest
from werkzeug.security import generate_password_hash

from app.wildlife import auth, create_app, sessions
from app.wildlife.db import session_scope
from app.wildlife.models import Base, User
from app.wildlife.sessions import MemorySessionStore, RedisSessionStore, ServerSideSessionInterface


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    def ping(self):
        return True

    def close(self):
        pass


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("CSRF_ENABLED", "0")
    monkeypatch.setenv("SESSION_TTL", "120")
    for k in ("REDIS_URL", "OPENAI_API_KEY"):
        monkeypatch.delenv(k, raising=False)
    auth._login_attempts.clear()

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        s.add(
            User(
                username="alice",
                email="alice@example.com",
                password_hash=generate_password_hash("password2"),
            )
        )
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    return client.post("/auth/login", data={"email": "alice@example.com", "password": "password2"})


def test_memory_store_expires_entries(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(sessions.time, "monotonic", lambda: now[0])
    store = MemorySessionStore(ttl=10)
    store.save("abc", {"user_id": 1})
    assert store.load("abc") == {"user_id": 1}

    now[0] += 11
    assert store.load("abc") is None
    assert store.load("missing") is None


def test_memory_store_sweeps_expired_entries_on_save(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(sessions.time, "monotonic", lambda: now[0])
    store = MemorySessionStore(ttl=10)
    store.save("a", {"csrf_token": "x"})
    store.save("b", {"csrf_token": "y"})
    assert len(store._data) == 2

    now[0] += 11
    store.save("c", {"user_id": 1})
    assert set(store._data) == {"c"}


def test_cookieless_visitors_do_not_accumulate(app, monkeypatch):
    now = [time.monotonic()]
    monkeypatch.setattr(sessions.time, "monotonic", lambda: now[0])
    store = app.session_interface.store

    for _ in range(30):
        assert app.test_client().get("/auth/login").status_code == 200
    assert len(store._data) == 30

    now[0] += 3600
    for _ in range(5):
        app.test_client().get("/auth/login")
    assert len(store._data) == 5


def test_redis_store_keys_and_ttl():
    fake = FakeRedis()
    store = RedisSessionStore(fake, ttl=300)
    store.save("abc", {"user_id": 7})
    assert fake.ttls == {"session:abc": 300}
    assert store.load("abc") == {"user_id": 7}
    store.delete("abc")
    assert store.load("abc") is None


def test_sessions_default_to_memory_store(app):
    assert isinstance(app.session_interface, ServerSideSessionInterface)
    assert isinstance(app.session_interface.store, MemorySessionStore)
    assert app.session_interface.store.ttl == 120


def test_requests_without_session_data_set_no_cookie(client):
    r = client.get("/health/live")
    assert "Set-Cookie" not in r.headers
    assert client.get_cookie("session") is None


def test_cookie_carries_only_a_signed_id(app, client):
    _login(client)
    cookie = client.get_cookie("session")
    assert cookie is not None
    assert "user_id" not in cookie.value
    store = app.session_interface.store
    assert len(store._data) == 1
    (sid,) = store._data
    assert cookie.value.startswith(sid)
    assert store.load(sid)["user_id"]


def test_tampered_cookie_is_treated_as_anonymous(client):
    _login(client)
    cookie = client.get_cookie("session")
    client.set_cookie("session", cookie.value[:-2] + "xx")
    r = client.get("/gallery/")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_logout_deletes_stored_session(app, client):
    _login(client)
    store = app.session_interface.store
    assert len(store._data) == 1
    client.get("/auth/logout")
    assert store._data == {}


def test_login_replaces_pre_auth_session(app, client):
    client.get("/auth/login")
    store = app.session_interface.store
    (pre_auth_sid,) = store._data

    _login(client)
    assert pre_auth_sid not in store._data
    assert len(store._data) == 1


def test_sessions_use_redis_when_available(app, client):
    fake = FakeRedis()
    app.session_interface = ServerSideSessionInterface(RedisSessionStore(fake, ttl=120))
    _login(client)
    (key,) = fake.store
    assert key.startswith("session:")
    assert fake.ttls[key] == 120
    assert client.get("/gallery/api/search?q=").status_code == 200
