"""
Ad API endpoints.

Upload routes parse the form into a request model first, then stage the
image(s), then hand both to the service which owns rollback from there.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status

from core.config import Settings
from core.db import MAX_BIGINT
from core.dependencies import get_ad_service, get_file_stager, get_settings
from core.errors import ValidationError
from core.storage import FileStager

from . import schemas
from .service import AdService

router = APIRouter(prefix="/ads")


@router.get("")
async def list_ads(
    category: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    service: AdService = Depends(get_ad_service),
) -> list[schemas.AdResponse]:
    filters = schemas.AdFilter(category=category, search=search)
    return await service.list_ads(filters)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ad(
    image: UploadFile | None = File(default=None),
    title: str = Form(default=""),
    description: str | None = Form(default=None),
    category: str | None = Form(default=None),
    service: AdService = Depends(get_ad_service),
    stager: FileStager = Depends(get_file_stager),
) -> schemas.AdResponse:
    if image is None:
        raise ValidationError("No file uploaded")

    payload = schemas.AdCreateRequest(title=title, description=description, category=category)
    staged = await stager.stage(image)
    return await service.create_ad(payload, staged)


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
async def create_ads_bulk(
    images: list[UploadFile] | None = File(default=None),
    titles: str | None = Form(default=None),
    descriptions: str | None = Form(default=None),
    category: str | None = Form(default=None),
    service: AdService = Depends(get_ad_service),
    stager: FileStager = Depends(get_file_stager),
    settings: Settings = Depends(get_settings),
) -> list[schemas.AdResponse]:
    """
    Upload several images at once, one ad per image, all in one category.

    `titles` and `descriptions` are JSON-encoded arrays aligned with the
    order of `images`.
    """
    if not images:
        raise ValidationError("No files uploaded")
    if len(images) > settings.max_bulk_files:
        raise ValidationError(f"Too many files. Max is {settings.max_bulk_files}.")

    payload = schemas.BulkAdCreateRequest.from_form(
        titles=titles,
        descriptions=descriptions,
        category=category,
    )
    staged = await stager.stage_many(images)
    return await service.create_ads_bulk(payload, staged)


@router.get("/{ad_id}")
async def get_ad(
    ad_id: int = Path(ge=1, le=MAX_BIGINT),
    service: AdService = Depends(get_ad_service),
) -> schemas.AdResponse:
    return await service.get_ad(ad_id)


@router.put("/{ad_id}")
async def update_ad(
    request: schemas.AdUpdateRequest,
    ad_id: int = Path(ge=1, le=MAX_BIGINT),
    service: AdService = Depends(get_ad_service),
) -> schemas.AdResponse:
    return await service.update_ad(ad_id, request)


@router.delete("/{ad_id}")
async def delete_ad(
    ad_id: int = Path(ge=1, le=MAX_BIGINT),
    service: AdService = Depends(get_ad_service),
) -> dict:
    return await service.delete_ad(ad_id)
