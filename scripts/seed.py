"""
Load the sample catalog (2 categories, 12 creatures).

Usage:
  python scripts/seed.py          # add missing sample rows
  python scripts/seed.py --reset  # delete feedback/creatures/categories first
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.wildlife.modules.catalog.service import seed_sample_data
from scripts._db_utils import database_url, script_session


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the sample wildlife catalog.")
    parser.add_argument("--reset", action="store_true", help="clear existing catalog data first")
    args = parser.parse_args()

    with script_session(database_url()) as s:
        result = seed_sample_data(s, reset=args.reset)
    print(f"Added {result.categories} categories and {result.creatures} creatures.")


if __name__ == "__main__":
    main()
