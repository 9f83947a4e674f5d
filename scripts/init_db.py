"""
Create the admin account (idempotent; never overwrites an existing password).

Usage:
  python scripts/init_db.py
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import select
from werkzeug.security import generate_password_hash

from app.wildlife.models import User
from scripts._db_utils import database_url, script_session


def seed_only(*, database_url_override: str | None = None) -> None:
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@example.com").strip().lower()
    admin_username = (os.environ.get("ADMIN_USERNAME") or "admin").strip()
    admin_password = os.environ.get("ADMIN_PASSWORD") or ""

    with script_session(database_url(database_url_override)) as s:
        # Email wins when it and the username belong to different accounts.
        user = s.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
        if user is None:
            user = s.execute(select(User).where(User.username == admin_username)).scalar_one_or_none()
        if user is None:
            if not admin_password:
                print("ADMIN_PASSWORD not set; skipping admin creation.")
                return
            user = User(
                username=admin_username,
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
                is_admin=True,
            )
            s.add(user)
            print(f"Created admin user {admin_username} <{admin_email}>.")
        elif not user.is_admin:
            user.is_admin = True
            print(f"Granted admin to existing user {user.username}.")
        else:
            print(f"Admin user {user.username} already present.")


def main() -> None:
    seed_only()


if __name__ == "__main__":
    main()
