"""
Ad persistence (raw SQL).

Every read hydrates the owning category's name with a join; only `name` is
pulled from `categories`.
"""

from __future__ import annotations

from typing import Any

from core.db import Database
from core.storage import StagedFile

_AD_FIELDS = (
    "a.id, a.title, a.description, a.category_id, c.name AS category_name, "
    "a.image_path, a.original_file_name, a.mime_type, a.file_size, a.created_at"
)

_SELECT_AD = f"""
    SELECT {_AD_FIELDS}
    FROM ads a
    JOIN categories c ON c.id = a.category_id
"""


class AdRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def list_ads(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List ads newest first.

        `search` is matched literally (no LIKE wildcards) and
        case-insensitively against title or description.
        """
        return await self.db.fetch_all(
            _SELECT_AD
            + """
            WHERE ($1::bigint IS NULL OR a.category_id = $1)
              AND (
                $2::text IS NULL
                OR strpos(lower(a.title), lower($2)) > 0
                OR strpos(lower(a.description), lower($2)) > 0
              )
            ORDER BY a.created_at DESC, a.id DESC
            """,
            category_id,
            search,
        )

    async def get(self, ad_id: int) -> dict[str, Any] | None:
        return await self.db.fetch_one(_SELECT_AD + " WHERE a.id = $1", ad_id)

    async def insert(
        self,
        *,
        title: str,
        description: str,
        category_id: int,
        image: StagedFile,
    ) -> dict[str, Any]:
        row = await self.db.fetch_one(
            f"""
            WITH inserted AS (
              INSERT INTO ads (title, description, category_id, image_path, original_file_name, mime_type, file_size)
              VALUES ($1, $2, $3, $4, $5, $6, $7)
              RETURNING *
            )
            SELECT {_AD_FIELDS}
            FROM inserted a
            JOIN categories c ON c.id = a.category_id
            """,
            title,
            description,
            category_id,
            image.path,
            image.original_name,
            image.mime_type,
            image.size,
        )
        if row is None:
            raise RuntimeError("Failed to insert ad.")
        return row

    async def update(
        self,
        ad_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        category_id: int | None = None,
    ) -> dict[str, Any] | None:
        """
        Patch the given fields; None leaves a column unchanged.
        """
        row = await self.db.fetch_one(
            """
            UPDATE ads
            SET title = COALESCE($2, title),
                description = COALESCE($3, description),
                category_id = COALESCE($4, category_id)
            WHERE id = $1
            RETURNING id
            """,
            ad_id,
            title,
            description,
            category_id,
        )
        if row is None:
            return None
        return await self.get(ad_id)

    async def delete(self, ad_id: int) -> bool:
        row = await self.db.fetch_one("DELETE FROM ads WHERE id = $1 RETURNING id", ad_id)
        return row is not None

    async def count_by_category(self, category_id: int) -> int:
        value = await self.db.fetch_value(
            "SELECT count(*) FROM ads WHERE category_id = $1",
            category_id,
        )
        return int(value or 0)
