"""
Deploy step: bring the schema to head, then make sure the admin account exists.

  python scripts/release.py             # uses DATABASE_URL
  python scripts/release.py --sample    # also adds missing sample creatures
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from alembic import command
from alembic.config import Config

from app.wildlife.config import is_production
from app.wildlife.modules.catalog.service import seed_sample_data
from scripts import init_db
from scripts._db_utils import script_session


def alembic_config(db_url: str) -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def run_release(*, with_sample_data: bool = False) -> None:
    db_url = (os.environ.get("DATABASE_URL") or "").strip()
    if not db_url:
        raise RuntimeError("DATABASE_URL is not set.")
    if is_production(os.environ.get("ENV", "")) and db_url.startswith("sqlite"):
        raise RuntimeError("SQLite is not supported in production; point DATABASE_URL at Postgres.")

    print("Upgrading schema to head", flush=True)
    command.upgrade(alembic_config(db_url), "head")

    init_db.seed_only(database_url_override=db_url)

    if with_sample_data:
        with script_session(db_url) as s:
            result = seed_sample_data(s)
        print(f"Sample data: {result.categories} categories, {result.creatures} creatures added.", flush=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run migrations and the admin seed.")
    parser.add_argument("--sample", action="store_true", help="add missing sample catalog entries")
    args = parser.parse_args()
    run_release(with_sample_data=args.sample)


if __name__ == "__main__":
    main()
