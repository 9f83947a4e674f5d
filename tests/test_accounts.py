import pytest
from sqlalchemy import func, select
from werkzeug.security import generate_password_hash

from app.wildlife import auth, create_app
from app.wildlife.db import session_scope
from app.wildlife.models import ActivityLog, Base, User
from app.wildlife.modules.accounts.service import (
    AuthError,
    AuthErrorCode,
    authenticate,
    delete_user,
    get_admin_count,
    is_admin,
    list_users_with_stats,
    make_admin,
    register,
    revoke_admin,
)
from app.wildlife.modules.catalog.service import seed_sample_data
from app.wildlife.modules.feedback.models import Feedback


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("CSRF_ENABLED", "0")
    for k in ("REDIS_URL", "OPENAI_API_KEY"):
        monkeypatch.delenv(k, raising=False)
    auth._login_attempts.clear()

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        seed_sample_data(s)
        s.add_all(
            [
                User(
                    username="admin",
                    email="admin@example.com",
                    password_hash=generate_password_hash("password1"),
                    is_admin=True,
                ),
                User(
                    username="alice",
                    email="alice@example.com",
                    password_hash=generate_password_hash("password2"),
                ),
            ]
        )
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, email, password):
    return client.post("/auth/login", data={"email": email, "password": password})


def _user_id(app, username):
    with session_scope(app) as s:
        return s.execute(select(User.id).where(User.username == username)).scalar_one()


def _user_count(app):
    with session_scope(app) as s:
        return s.execute(select(func.count(User.id))).scalar()


def test_register_creates_non_admin_user(app):
    with session_scope(app) as s:
        user = register(s, " bob ", "Bob@Example.com", "secret1", "secret1")
        assert user.id
        assert user.username == "bob"
        assert user.email == "bob@example.com"
        assert user.is_admin is False
        assert user.password_hash != "secret1"


@pytest.mark.parametrize(
    "username,email",
    [
        ("alice", "someone-else@example.com"),
        ("someone-else", "alice@example.com"),
        ("someone-else", "ALICE@example.com"),
    ],
)
def test_register_rejects_existing_username_or_email(app, username, email):
    before = _user_count(app)
    with session_scope(app) as s:
        with pytest.raises(AuthError) as exc:
            register(s, username, email, "secret1", "secret1")
    assert exc.value.code == AuthErrorCode.USER_EXISTS
    assert _user_count(app) == before


def test_register_validation_creates_no_row(app):
    before = _user_count(app)
    cases = [
        (("bob", "bob@example.com", "short", "short"), AuthErrorCode.WEAK_PASSWORD),
        (("bob", "bob@example.com", "secret1", "secret2"), AuthErrorCode.PASSWORD_MISMATCH),
        (("", "bob@example.com", "secret1", "secret1"), AuthErrorCode.MISSING_FIELDS),
        (("bob", "  ", "secret1", "secret1"), AuthErrorCode.MISSING_FIELDS),
    ]
    for args, code in cases:
        with session_scope(app) as s:
            with pytest.raises(AuthError) as exc:
                register(s, *args)
        assert exc.value.code == code
    assert _user_count(app) == before


def test_authenticate_is_case_insensitive_on_email(app):
    with session_scope(app) as s:
        user = authenticate(s, "  ALICE@Example.com ", "password2")
        assert user.username == "alice"


def test_unknown_email_and_wrong_password_look_identical(app):
    with session_scope(app) as s:
        with pytest.raises(AuthError) as unknown:
            authenticate(s, "nobody@example.com", "password2")
        with pytest.raises(AuthError) as wrong:
            authenticate(s, "alice@example.com", "not-the-password")
    assert unknown.value.code == wrong.value.code == AuthErrorCode.INVALID_CREDENTIALS
    assert unknown.value.message == wrong.value.message


def test_authenticate_requires_both_fields(app):
    with session_scope(app) as s:
        with pytest.raises(AuthError) as exc:
            authenticate(s, "alice@example.com", "")
    assert exc.value.code == AuthErrorCode.MISSING_CREDENTIALS


def test_register_then_login_over_http(app, client):
    r = client.post(
        "/auth/register",
        data={
            "username": "carol",
            "email": "carol@example.com",
            "password": "secret1",
            "confirm_password": "secret1",
        },
    )
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]

    r = _login(client, "carol@example.com", "secret1")
    assert r.headers["Location"].endswith("/gallery/")
    assert client.get("/gallery/").status_code == 200

    with session_scope(app) as s:
        actions = set(s.execute(select(ActivityLog.action).where(ActivityLog.username == "carol")).scalars())
    assert {"REGISTER", "LOGIN", "GET /gallery/"} <= actions


def test_failed_login_is_logged_without_user(app, client):
    r = _login(client, "alice@example.com", "nope")
    assert "/auth/login" in r.headers["Location"]

    with session_scope(app) as s:
        row = s.execute(select(ActivityLog).where(ActivityLog.action == "LOGIN_FAILED")).scalar_one()
        assert row.user_id is None
        assert "alice@example.com" in row.details


def test_signed_in_user_skips_login_page(client):
    _login(client, "alice@example.com", "password2")
    r = client.get("/auth/login")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/gallery/")


def test_login_regenerates_session_id(client):
    client.get("/auth/login")
    before = client.get_cookie("session")
    _login(client, "alice@example.com", "password2")
    after = client.get_cookie("session")
    assert after is not None
    if before is not None:
        assert before.value != after.value


def test_make_and_revoke_admin(app):
    alice_id = _user_id(app, "alice")
    with session_scope(app) as s:
        assert make_admin(s, alice_id) is True
    with session_scope(app) as s:
        assert get_admin_count(s) == 2
        assert is_admin(s, alice_id) is True
        assert revoke_admin(s, alice_id) is True
    with session_scope(app) as s:
        assert get_admin_count(s) == 1
        assert is_admin(s, alice_id) is False
        assert make_admin(s, 99999) is False


def test_delete_user_removes_feedback_and_keeps_log_snapshot(app):
    alice_id = _user_id(app, "alice")
    with session_scope(app) as s:
        s.add(Feedback(user_id=alice_id, creature_id=1, comment="Lovely", rating=5))
        s.add(ActivityLog(user_id=alice_id, username="alice", action="LOGIN"))

    with session_scope(app) as s:
        assert delete_user(s, alice_id) is True

    with session_scope(app) as s:
        assert s.get(User, alice_id) is None
        assert s.execute(select(func.count(Feedback.id))).scalar() == 0
        log = s.execute(select(ActivityLog).where(ActivityLog.action == "LOGIN")).scalar_one()
        assert log.user_id is None
        assert log.username == "alice"
        assert delete_user(s, alice_id) is False


def test_list_users_with_stats_counts_feedback(app):
    alice_id = _user_id(app, "alice")
    with session_scope(app) as s:
        s.add_all(
            [
                Feedback(user_id=alice_id, creature_id=1, comment="One", rating=4),
                Feedback(user_id=alice_id, creature_id=2, comment="Two", rating=3),
            ]
        )
    with session_scope(app) as s:
        counts = {u.username: c for u, c in list_users_with_stats(s)}
    assert counts == {"admin": 0, "alice": 2}


def test_admin_cannot_revoke_or_delete_self(app, client):
    admin_id = _user_id(app, "admin")
    _login(client, "admin@example.com", "password1")

    client.post(f"/admin/users/{admin_id}/revoke-admin")
    client.post(f"/admin/users/{admin_id}/delete")

    with session_scope(app) as s:
        me = s.get(User, admin_id)
        assert me is not None
        assert me.is_admin is True


def test_admin_user_management_over_http(app, client):
    alice_id = _user_id(app, "alice")
    _login(client, "admin@example.com", "password1")

    r = client.get("/admin/users")
    assert r.status_code == 200
    assert b"alice@example.com" in r.data

    r = client.post(f"/admin/users/{alice_id}/make-admin")
    assert r.status_code == 302
    with session_scope(app) as s:
        assert s.get(User, alice_id).is_admin is True

    client.post(f"/admin/users/{alice_id}/revoke-admin")
    with session_scope(app) as s:
        assert s.get(User, alice_id).is_admin is False

    client.post(f"/admin/users/{alice_id}/delete")
    with session_scope(app) as s:
        assert s.get(User, alice_id) is None
        actions = set(s.execute(select(ActivityLog.action)).scalars())
    assert {"ADMIN_USERS_VIEW", "ADMIN_PROMOTE_USER", "ADMIN_REVOKE_USER", "ADMIN_USER_DELETE"} <= actions


def test_deleted_user_session_is_dropped(app, client):
    alice_id = _user_id(app, "alice")
    _login(client, "alice@example.com", "password2")
    assert client.get("/gallery/").status_code == 200

    with session_scope(app) as s:
        delete_user(s, alice_id)

    r = client.get("/gallery/")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]
