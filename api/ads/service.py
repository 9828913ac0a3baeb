"""
Ad business logic.

Uploads are staged to disk by the router before these methods run. From that
point on the service owns the staged files: every failure path discards them
before the error leaves this module. A successful insert hands the file over
to the ad record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from categories.schemas import CategoryRef
from core.errors import AppError, NotFoundError, ValidationError
from core.storage import FileStager, StagedFile

from . import schemas
from .repository import AdRepository

if TYPE_CHECKING:
    from categories.repository import CategoryRepository

logger = logging.getLogger(__name__)


def _to_ad_response(row: dict) -> schemas.AdResponse:
    return schemas.AdResponse(
        id=int(row["id"]),
        title=str(row["title"]),
        description=str(row.get("description") or ""),
        category=CategoryRef(id=int(row["category_id"]), name=str(row["category_name"])),
        image_path=str(row["image_path"]),
        original_file_name=str(row["original_file_name"]),
        mime_type=str(row["mime_type"]),
        file_size=int(row["file_size"]),
        created_at=row["created_at"],
    )


class AdService:
    def __init__(
        self,
        ads: AdRepository,
        categories: CategoryRepository,
        stager: FileStager,
    ) -> None:
        self.ads = ads
        self.categories = categories
        self.stager = stager

    async def _require_category(self, category_id: int) -> dict:
        category = await self.categories.get(category_id)
        if category is None:
            raise ValidationError("Invalid category")
        return category

    def _rollback_bulk(self, staged_files: Sequence[StagedFile], rows: list[dict]) -> None:
        self.stager.discard_many(f.path for f in staged_files)
        if rows:
            logger.warning(
                "Bulk upload rolled back files only; ads %s remain without images",
                [int(r["id"]) for r in rows],
            )

    async def list_ads(self, filters: schemas.AdFilter) -> list[schemas.AdResponse]:
        rows = await self.ads.list_ads(
            category_id=filters.category,
            search=filters.search or None,
        )
        return [_to_ad_response(row) for row in rows]

    async def create_ad(
        self,
        payload: schemas.AdCreateRequest,
        staged: StagedFile,
    ) -> schemas.AdResponse:
        try:
            await self._require_category(payload.category)
            row = await self.ads.insert(
                title=payload.title.strip(),
                description=(payload.description or "").strip(),
                category_id=payload.category,
                image=staged,
            )
        except AppError:
            self.stager.discard_many([staged.path])
            raise
        except Exception as exc:
            logger.exception("Failed to persist ad for %s", staged.path)
            self.stager.discard_many([staged.path])
            # Upload endpoints report storage failures as a rejected request.
            raise ValidationError(f"Failed to save ad: {exc}") from exc

        logger.info("Created ad %s in category %s", row["id"], payload.category)
        return _to_ad_response(row)

    async def create_ads_bulk(
        self,
        payload: schemas.BulkAdCreateRequest,
        staged_files: Sequence[StagedFile],
    ) -> list[schemas.AdResponse]:
        """
        Create one ad per staged file, all in the same category.

        On any failure every file of the batch is discarded, including files
        whose ads were already written. Those rows are not removed.
        """
        if not staged_files:
            raise ValidationError("No files uploaded")

        rows: list[dict] = []
        try:
            await self._require_category(payload.category)
            for index, staged in enumerate(staged_files):
                row = await self.ads.insert(
                    title=payload.title_at(index),
                    description=payload.description_at(index),
                    category_id=payload.category,
                    image=staged,
                )
                rows.append(row)
        except AppError:
            self._rollback_bulk(staged_files, rows)
            raise
        except Exception as exc:
            logger.exception("Bulk upload failed at item %d of %d", len(rows) + 1, len(staged_files))
            self._rollback_bulk(staged_files, rows)
            raise ValidationError(f"Failed to save ad: {exc}") from exc

        logger.info("Created %d ads in category %s", len(rows), payload.category)
        return [_to_ad_response(row) for row in rows]

    async def get_ad(self, ad_id: int) -> schemas.AdResponse:
        row = await self.ads.get(ad_id)
        if row is None:
            raise NotFoundError("Ad not found")
        return _to_ad_response(row)

    async def update_ad(self, ad_id: int, payload: schemas.AdUpdateRequest) -> schemas.AdResponse:
        title = payload.title.strip() if payload.title is not None else None
        if title is not None and not title:
            raise ValidationError("Title is required")
        description = payload.description.strip() if payload.description is not None else None

        if payload.category is not None:
            await self._require_category(payload.category)

        row = await self.ads.update(
            ad_id,
            title=title,
            description=description,
            category_id=payload.category,
        )
        if row is None:
            raise NotFoundError("Ad not found")
        return _to_ad_response(row)

    async def delete_ad(self, ad_id: int) -> dict[str, str]:
        row = await self.ads.get(ad_id)
        if row is None:
            raise NotFoundError("Ad not found")

        self.stager.discard(str(row["image_path"]))
        await self.ads.delete(ad_id)

        logger.info("Deleted ad %s", ad_id)
        return {"message": "Ad deleted successfully"}
