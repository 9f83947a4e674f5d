"""
Copy externally hosted creature images into the images table and point each
creature's image_url at /images/<id>.

Usage:
  python scripts/migrate_images.py [--dry-run]
"""
from __future__ import annotations

import argparse
import sys
import urllib.error
import urllib.request
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import select

from app.wildlife.constants import DEFAULT_IMAGE_CONTENT_TYPE, IMAGE_URL_PREFIX
from app.wildlife.modules.catalog.models import Creature
from app.wildlife.modules.images.service import image_exists, image_url_for, upsert_image
from scripts._db_utils import database_url, script_session

USER_AGENT = "Mozilla/5.0 (compatible; wildlife-image-migrator/1.0)"
TIMEOUT_SECONDS = 30


def download_image(url: str) -> tuple[bytes, str]:
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    with urllib.request.urlopen(req, timeout=TIMEOUT_SECONDS) as resp:
        data = resp.read()
        content_type = (resp.headers.get("Content-Type") or DEFAULT_IMAGE_CONTENT_TYPE).split(";")[0].strip()
    return data, content_type


def main() -> None:
    parser = argparse.ArgumentParser(description="Migrate external creature images into the database.")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    ok = failed = 0
    with script_session(database_url()) as s:
        creatures = list(
            s.execute(
                select(Creature)
                .where(Creature.image_url.isnot(None), Creature.image_url.notlike(f"{IMAGE_URL_PREFIX}%"))
                .order_by(Creature.id)
            ).scalars()
        )
        print(f"Found {len(creatures)} creatures with external images to migrate.")

        for creature in creatures:
            print(f"Migrating: {creature.name} (ID: {creature.id})... ", end="", flush=True)
            if args.dry_run:
                print("skipped (dry run)")
                continue
            if image_exists(s, creature.id):
                creature.image_url = image_url_for(creature.id)
                s.commit()
                print("already stored, repointed")
                ok += 1
                continue
            source_url = creature.image_url
            try:
                data, content_type = download_image(source_url)
            except (urllib.error.URLError, TimeoutError, OSError) as e:
                print(f"FAILED ({e})")
                failed += 1
                continue
            upsert_image(s, creature.id, data, content_type, original_url=source_url)
            creature = s.get(Creature, creature.id)
            creature.image_url = image_url_for(creature.id)
            s.commit()
            print(f"OK ({round(len(data) / 1024, 1)} KB)")
            ok += 1

    print(f"Done: {ok} migrated, {failed} failed.")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
