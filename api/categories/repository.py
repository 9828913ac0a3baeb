"""
Category persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any, Sequence

import asyncpg

from core.db import Database
from core.errors import ConflictError, ValidationError

_COLUMNS = "id, name, description, created_at"

CATEGORY_IN_USE_MESSAGE = "Cannot delete category with existing ads. Please move or delete all ads first."


class CategoryRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def list_with_ad_counts(self) -> list[dict[str, Any]]:
        return await self.db.fetch_all(
            """
            SELECT
              c.id,
              c.name,
              c.description,
              c.created_at,
              COALESCE(stats.ad_count, 0) AS ad_count
            FROM categories c
            LEFT JOIN LATERAL (
              SELECT count(*) AS ad_count
              FROM ads a
              WHERE a.category_id = c.id
            ) stats ON true
            ORDER BY c.name ASC
            """
        )

    async def get(self, category_id: int) -> dict[str, Any] | None:
        return await self.db.fetch_one(
            f"SELECT {_COLUMNS} FROM categories WHERE id = $1",
            category_id,
        )

    async def get_by_name(self, name: str) -> dict[str, Any] | None:
        return await self.db.fetch_one(
            f"SELECT {_COLUMNS} FROM categories WHERE name = $1",
            name,
        )

    async def insert(self, *, name: str, description: str) -> dict[str, Any] | None:
        """
        Insert a category. Returns None when the name is already taken.
        """
        return await self.db.fetch_one(
            f"""
            INSERT INTO categories (name, description)
            VALUES ($1, $2)
            ON CONFLICT (name) DO NOTHING
            RETURNING {_COLUMNS}
            """,
            name,
            description,
        )

    async def update(
        self,
        category_id: int,
        *,
        name: str,
        description: str | None,
    ) -> dict[str, Any] | None:
        try:
            return await self.db.fetch_one(
                f"""
                UPDATE categories
                SET name = $2,
                    description = COALESCE($3, description)
                WHERE id = $1
                RETURNING {_COLUMNS}
                """,
                category_id,
                name,
                description,
            )
        except asyncpg.UniqueViolationError as exc:
            raise ValidationError("Category already exists") from exc

    async def delete(self, category_id: int) -> dict[str, Any] | None:
        try:
            return await self.db.fetch_one(
                f"DELETE FROM categories WHERE id = $1 RETURNING {_COLUMNS}",
                category_id,
            )
        except asyncpg.ForeignKeyViolationError as exc:
            # An ad was inserted between the count check and the delete.
            raise ConflictError(CATEGORY_IN_USE_MESSAGE) from exc

    async def replace_all(self, categories: Sequence[tuple[str, str]]) -> list[dict[str, Any]]:
        """
        Delete every category and insert `categories` in one transaction.

        Fails with a foreign-key violation while ads still reference any row.
        """
        async with self.db.transaction() as conn:
            await conn.execute("DELETE FROM categories")
            await conn.executemany(
                "INSERT INTO categories (name, description) VALUES ($1, $2)",
                list(categories),
            )
            rows = await conn.fetch(f"SELECT {_COLUMNS} FROM categories ORDER BY id")
        return [dict(r) for r in rows]
