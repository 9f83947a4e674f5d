from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select
from werkzeug.security import generate_password_hash

from app.wildlife import auth, create_app
from app.wildlife.activity import (
    clean_old_logs,
    get_activity_stats,
    get_recent_logs,
    list_logs,
    log_activity,
    should_log_page_view,
)
from app.wildlife.db import session_scope
from app.wildlife.models import ActivityLog, Base, User
from app.wildlife.modules.catalog.service import seed_sample_data


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


def _actions(app):
    with session_scope(app) as s:
        return list(s.execute(select(ActivityLog.action).order_by(ActivityLog.id)).scalars())


def _add_log(s, action, username=None, user_id=None, age_days=0):
    s.add(
        ActivityLog(
            user_id=user_id,
            username=username,
            action=action,
            created_at=datetime.utcnow() - timedelta(days=age_days),
        )
    )


def test_log_activity_outside_request_uses_system_meta(app):
    log_activity(None, None, "MIGRATION", "backfilled", app=app)
    with session_scope(app) as s:
        row = s.execute(select(ActivityLog)).scalar_one()
    assert row.action == "MIGRATION"
    assert row.details == "backfilled"
    assert row.ip_address == "system"
    assert row.user_agent == "system"
    assert row.user_id is None


def test_log_activity_truncates_long_actions(app):
    log_activity(None, None, "X" * 250, app=app)
    assert _actions(app) == ["X" * 100]


def test_log_activity_never_raises(app, monkeypatch):
    def _broken_sessionmaker():
        raise RuntimeError("database is gone")

    monkeypatch.setitem(app.extensions, "sqlalchemy_sessionmaker", _broken_sessionmaker)
    log_activity(1, "alice", "LOGIN", app=app)


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/gallery/", True),
        ("/admin/users", True),
        ("/health", False),
        ("/health/ready", False),
        ("/gallery/api/search", False),
        ("/images/3", False),
        ("/static/css/app.css", False),
        ("/favicon.ico", False),
        ("/something.js", False),
    ],
)
def test_should_log_page_view(path, expected):
    assert should_log_page_view(path) is expected


def test_page_views_logged_for_signed_in_users_only(app, client):
    client.get("/auth/login")
    client.get("/health")
    assert _actions(app) == []

    _login(client, "alice@example.com", "password2")
    client.get("/gallery/")
    client.get("/gallery/api/search?q=lion")
    client.get("/health/live")
    client.get("/gallery/creature/99999")

    assert _actions(app) == ["LOGIN", "GET /gallery/", "GET /gallery/creature/99999"]

    with session_scope(app) as s:
        row = s.execute(select(ActivityLog).where(ActivityLog.action == "GET /gallery/")).scalar_one()
    assert row.username == "alice"
    assert row.ip_address == "127.0.0.1"


def test_activity_stats_window(app):
    with session_scope(app) as s:
        alice_id = s.execute(select(User.id).where(User.username == "alice")).scalar_one()
        admin_id = s.execute(select(User.id).where(User.username == "admin")).scalar_one()
        for _ in range(3):
            _add_log(s, "LOGIN", "alice", alice_id)
        _add_log(s, "GET /gallery/", "alice", alice_id, age_days=1)
        _add_log(s, "LOGIN", "admin", admin_id, age_days=2)
        _add_log(s, "LOGIN_FAILED")
        _add_log(s, "LOGIN", "alice", alice_id, age_days=30)

    with session_scope(app) as s:
        stats = get_activity_stats(s, 7)

    assert stats.totals == {"total_activities": 6, "unique_users": 2}
    assert stats.top_actions[0] == {"action": "LOGIN", "count": 4}
    assert [u["username"] for u in stats.active_users] == ["alice", "admin"]
    assert stats.active_users[0]["activity_count"] == 4
    assert len(stats.daily_activity) == 3
    assert sum(d["count"] for d in stats.daily_activity) == 6
    # Newest day first.
    assert stats.daily_activity[0]["date"] > stats.daily_activity[-1]["date"]

    with session_scope(app) as s:
        assert get_activity_stats(s, 60).totals["total_activities"] == 7


def test_clean_old_logs_removes_only_expired_rows(app):
    with session_scope(app) as s:
        _add_log(s, "OLD", age_days=45)
        _add_log(s, "OLDER", age_days=90)
        _add_log(s, "RECENT", age_days=3)

    with session_scope(app) as s:
        assert clean_old_logs(s, 30) == 2
    assert _actions(app) == ["RECENT"]

    with session_scope(app) as s:
        assert clean_old_logs(s, 30) == 0


def test_recent_and_paged_logs_are_newest_first(app):
    with session_scope(app) as s:
        for i in range(5):
            _add_log(s, f"A{i}", age_days=5 - i)

    with session_scope(app) as s:
        assert [r.action for r in get_recent_logs(s, 2)] == ["A4", "A3"]
        assert [r.action for r in list_logs(s, page=2, per_page=2)] == ["A2", "A1"]
        assert list_logs(s, page=9, per_page=2) == []


def test_admin_log_pages(app, client):
    with session_scope(app) as s:
        _add_log(s, "ANCIENT", age_days=100)

    _login(client, "admin@example.com", "password1")
    assert client.get("/admin/").status_code == 200
    assert client.get("/admin/health").status_code == 200

    r = client.get("/admin/logs?page=1")
    assert r.status_code == 200
    assert b"ANCIENT" in r.data

    r = client.post("/admin/logs/clean", data={"days": "30"})
    assert r.status_code == 302

    actions = _actions(app)
    assert "ANCIENT" not in actions
    assert {"ADMIN_DASHBOARD_VIEW", "ADMIN_HEALTH_VIEW", "ADMIN_LOGS_CLEAN"} <= set(actions)

    with session_scope(app) as s:
        row = s.execute(select(ActivityLog).where(ActivityLog.action == "ADMIN_LOGS_CLEAN")).scalar_one()
    assert row.details == "Deleted 1 logs older than 30 days"


def test_admin_logs_clean_rejects_non_positive_days(app, client):
    with session_scope(app) as s:
        _add_log(s, "ANCIENT", age_days=100)
    _login(client, "admin@example.com", "password1")
    client.post("/admin/logs/clean", data={"days": "0"})
    with session_scope(app) as s:
        assert s.execute(select(func.count(ActivityLog.id)).where(ActivityLog.action == "ANCIENT")).scalar() == 1
