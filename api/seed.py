"""
Reset the category table to the default set.

Usage (from `api/`, with DATABASE_URL set):
    python -m seed

Existing categories are deleted first. The database refuses this while ads
still reference a category; the script then exits with status 1.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from categories.repository import CategoryRepository
from core.config import Settings
from core.db import Database
from core.logging_config import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Electronics", "Electronic devices and gadgets"),
    ("Automobiles", "Cars, bikes, and automotive parts"),
    ("Real Estate", "Property and real estate listings"),
    ("Jobs", "Job openings and career opportunities"),
    ("Services", "Professional and personal services"),
    ("Fashion", "Clothing and fashion accessories"),
    ("Home & Garden", "Home decor and gardening items"),
    ("Sports", "Sports equipment and activities"),
]


async def seed_categories(db: Database) -> list[dict]:
    rows = await CategoryRepository(db).replace_all(DEFAULT_CATEGORIES)
    logger.info("Seeded %d categories", len(rows))
    return rows


async def run(settings: Settings) -> int:
    db = Database(settings.database_url, min_size=1, max_size=1)
    try:
        await db.open()
        rows = await seed_categories(db)
    except Exception:
        logger.exception("Seed failed")
        return 1
    finally:
        await db.close()

    print("\nCreated categories:")
    for row in rows:
        print(f"- {row['name']}: {row['description']}")
    return 0


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":
    main()
