"""
Category business logic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.errors import ConflictError, NotFoundError, ValidationError

from . import schemas
from .repository import CATEGORY_IN_USE_MESSAGE, CategoryRepository

if TYPE_CHECKING:
    from ads.repository import AdRepository

logger = logging.getLogger(__name__)


def _to_category_response(row: dict) -> schemas.CategoryResponse:
    return schemas.CategoryResponse(
        id=int(row["id"]),
        name=str(row["name"]),
        description=str(row.get("description") or ""),
        created_at=row["created_at"],
    )


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Category name is required")
    return cleaned


class CategoryService:
    def __init__(self, categories: CategoryRepository, ads: AdRepository) -> None:
        self.categories = categories
        self.ads = ads

    async def list_categories(self) -> list[schemas.CategoryWithCountResponse]:
        rows = await self.categories.list_with_ad_counts()
        return [
            schemas.CategoryWithCountResponse(
                **_to_category_response(row).model_dump(),
                ad_count=int(row.get("ad_count") or 0),
            )
            for row in rows
        ]

    async def create_category(self, payload: schemas.CategoryCreateRequest) -> schemas.CategoryResponse:
        name = _clean_name(payload.name)
        description = (payload.description or "").strip()

        if await self.categories.get_by_name(name) is not None:
            raise ValidationError("Category already exists")

        row = await self.categories.insert(name=name, description=description)
        if row is None:
            # Lost a race against a concurrent insert of the same name.
            raise ValidationError("Category already exists")

        logger.info("Created category %s (%r)", row["id"], name)
        return _to_category_response(row)

    async def get_category(self, category_id: int) -> schemas.CategoryResponse:
        row = await self.categories.get(category_id)
        if row is None:
            raise NotFoundError("Category not found")
        return _to_category_response(row)

    async def update_category(
        self,
        category_id: int,
        payload: schemas.CategoryUpdateRequest,
    ) -> schemas.CategoryResponse:
        name = _clean_name(payload.name)
        description = payload.description.strip() if payload.description is not None else None

        existing = await self.categories.get_by_name(name)
        if existing is not None and int(existing["id"]) != category_id:
            raise ValidationError("Category already exists")

        row = await self.categories.update(category_id, name=name, description=description)
        if row is None:
            raise NotFoundError("Category not found")
        return _to_category_response(row)

    async def delete_category(self, category_id: int) -> dict[str, str]:
        ad_count = await self.ads.count_by_category(category_id)
        if ad_count > 0:
            raise ConflictError(CATEGORY_IN_USE_MESSAGE)

        row = await self.categories.delete(category_id)
        if row is None:
            raise NotFoundError("Category not found")

        logger.info("Deleted category %s (%r)", category_id, row["name"])
        return {"message": "Category deleted successfully"}
