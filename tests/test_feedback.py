import pytest
from sqlalchemy import func, select
from werkzeug.security import generate_password_hash

from app.wildlife import auth, create_app
from app.wildlife.db import session_scope
from app.wildlife.models import Base, User
from app.wildlife.modules.catalog.models import Creature
from app.wildlife.modules.catalog.service import seed_sample_data
from app.wildlife.modules.feedback.models import Feedback
from app.wildlife.modules.feedback.service import (
    FeedbackError,
    FeedbackErrorCode,
    create_feedback,
    delete_feedback,
    get_average_rating,
    get_feedback_for_creature,
    get_recent_feedback,
    get_user_feedback_count,
    parse_rating,
)


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
                User(
                    username="bob",
                    email="bob@example.com",
                    password_hash=generate_password_hash("password3"),
                ),
            ]
        )
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, email, password):
    return client.post("/auth/login", data={"email": email, "password": password})


def _users(app):
    with session_scope(app) as s:
        return {u.username: u for u in s.execute(select(User)).scalars()}


def _lion_id(app):
    with session_scope(app) as s:
        return s.execute(select(Creature.id).where(Creature.name == "African Lion")).scalar_one()


def _feedback_count(app):
    with session_scope(app) as s:
        return s.execute(select(func.count(Feedback.id))).scalar()


@pytest.mark.parametrize("raw", ["0", "6", "-1", "abc", "", None, "4.5"])
def test_parse_rating_rejects_out_of_range(raw):
    with pytest.raises(FeedbackError) as exc:
        parse_rating(raw)
    assert exc.value.code == FeedbackErrorCode.INVALID_RATING


@pytest.mark.parametrize("raw,expected", [("1", 1), ("5", 5), (" 3 ", 3), (4, 4)])
def test_parse_rating_accepts_bounds(raw, expected):
    assert parse_rating(raw) == expected


def test_create_feedback_validates_input(app):
    users = _users(app)
    lion_id = _lion_id(app)
    with session_scope(app) as s:
        with pytest.raises(FeedbackError) as exc:
            create_feedback(s, users["alice"].id, lion_id, "   ", 4)
        assert exc.value.code == FeedbackErrorCode.MISSING_COMMENT

        with pytest.raises(FeedbackError) as exc:
            create_feedback(s, users["alice"].id, lion_id, "Great", 6)
        assert exc.value.code == FeedbackErrorCode.INVALID_RATING

        with pytest.raises(FeedbackError) as exc:
            create_feedback(s, users["alice"].id, 99999, "Great", 4)
        assert exc.value.code == FeedbackErrorCode.NOT_FOUND
    assert _feedback_count(app) == 0


def test_create_feedback_without_rating_is_excluded_from_average(app):
    users = _users(app)
    lion_id = _lion_id(app)
    with session_scope(app) as s:
        assert get_average_rating(s, lion_id) is None
        create_feedback(s, users["alice"].id, lion_id, "Majestic", "")
        assert get_average_rating(s, lion_id) is None
        create_feedback(s, users["alice"].id, lion_id, "Loud", 4)
        create_feedback(s, users["bob"].id, lion_id, "Sleepy", 5)
        assert get_average_rating(s, lion_id) == 4.5
        assert get_user_feedback_count(s, users["alice"].id) == 2
        assert get_user_feedback_count(s, users["bob"].id) == 1
        assert [fb.comment for fb in get_recent_feedback(s, 2)] == ["Sleepy", "Loud"]
        listed = get_feedback_for_creature(s, lion_id)
    assert len(listed) == 3
    assert listed[0].username in ("alice", "bob")


def test_average_rating_rounds_to_two_places(app):
    users = _users(app)
    lion_id = _lion_id(app)
    with session_scope(app) as s:
        for rating in (5, 4, 4):
            create_feedback(s, users["alice"].id, lion_id, "ok", rating)
        assert get_average_rating(s, lion_id) == 4.33


def test_delete_feedback_authorization(app):
    users = _users(app)
    lion_id = _lion_id(app)
    with session_scope(app) as s:
        mine = create_feedback(s, users["alice"].id, lion_id, "Mine", 3).id
        other = create_feedback(s, users["alice"].id, lion_id, "Also mine", 2).id

    with session_scope(app) as s:
        with pytest.raises(FeedbackError) as exc:
            delete_feedback(s, mine, users["bob"])
        assert exc.value.code == FeedbackErrorCode.NOT_AUTHORIZED

    with session_scope(app) as s:
        assert delete_feedback(s, mine, users["alice"]) == lion_id
        # Admins may delete anyone's feedback.
        assert delete_feedback(s, other, users["admin"]) == lion_id

    with session_scope(app) as s:
        with pytest.raises(FeedbackError) as exc:
            delete_feedback(s, mine, users["alice"])
        assert exc.value.code == FeedbackErrorCode.NOT_FOUND
    assert _feedback_count(app) == 0


@pytest.mark.parametrize("rating", ["0", "6", ""])
def test_feedback_form_rejects_bad_rating(app, client, rating):
    lion_id = _lion_id(app)
    _login(client, "alice@example.com", "password2")
    r = client.post("/feedback/", data={"creature_id": str(lion_id), "rating": rating, "comment": "Hi"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith(f"/gallery/creature/{lion_id}")
    assert _feedback_count(app) == 0


def test_feedback_form_round_trip(app, client):
    lion_id = _lion_id(app)
    _login(client, "alice@example.com", "password2")

    r = client.post("/feedback/", data={"creature_id": str(lion_id), "rating": "5", "comment": "Stunning"})
    assert r.status_code == 302
    assert _feedback_count(app) == 1

    r = client.get(f"/feedback/api/{lion_id}")
    assert r.status_code == 200
    assert len(r.json) == 1
    assert r.json[0]["comment"] == "Stunning"
    assert r.json[0]["rating"] == 5
    assert r.json[0]["username"] == "alice"

    r = client.get(f"/gallery/creature/{lion_id}")
    assert b"5.0" in r.data
    assert b"Stunning" in r.data


def test_feedback_for_unknown_creature_redirects_to_gallery(app, client):
    _login(client, "alice@example.com", "password2")
    r = client.post("/feedback/", data={"creature_id": "99999", "rating": "5", "comment": "Hi"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/gallery/")
    assert _feedback_count(app) == 0


def test_feedback_delete_over_http(app, client):
    users = _users(app)
    lion_id = _lion_id(app)
    with session_scope(app) as s:
        fb_id = create_feedback(s, users["alice"].id, lion_id, "Mine", 3).id

    _login(client, "bob@example.com", "password3")
    client.post(f"/feedback/delete/{fb_id}")
    assert _feedback_count(app) == 1
    client.get("/auth/logout")

    _login(client, "alice@example.com", "password2")
    r = client.post(f"/feedback/delete/{fb_id}")
    assert r.headers["Location"].endswith(f"/gallery/creature/{lion_id}")
    assert _feedback_count(app) == 0


def test_feedback_requires_login(app, client):
    r = client.post("/feedback/", data={"creature_id": "1", "rating": "5", "comment": "Hi"})
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]
    r = client.get("/feedback/api/1")
    assert r.status_code == 401


def test_admin_dashboard_lists_latest_feedback(app, client):
    users = _users(app)
    lion_id = _lion_id(app)
    with session_scope(app) as s:
        create_feedback(s, users["alice"].id, lion_id, "Best cat in the gallery", 5)

    _login(client, "admin@example.com", "password1")
    r = client.get("/admin/")
    assert r.status_code == 200
    assert b"Best cat in the gallery" in r.data
