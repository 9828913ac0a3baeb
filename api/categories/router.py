"""
Category API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from core.db import MAX_BIGINT
from core.dependencies import get_category_service

from . import schemas
from .service import CategoryService

router = APIRouter(prefix="/categories")


@router.get("")
async def list_categories(
    service: CategoryService = Depends(get_category_service),
) -> list[schemas.CategoryWithCountResponse]:
    return await service.list_categories()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: schemas.CategoryCreateRequest,
    service: CategoryService = Depends(get_category_service),
) -> schemas.CategoryResponse:
    return await service.create_category(request)


@router.get("/{category_id}")
async def get_category(
    category_id: int = Path(ge=1, le=MAX_BIGINT),
    service: CategoryService = Depends(get_category_service),
) -> schemas.CategoryResponse:
    return await service.get_category(category_id)


@router.put("/{category_id}")
async def update_category(
    request: schemas.CategoryUpdateRequest,
    category_id: int = Path(ge=1, le=MAX_BIGINT),
    service: CategoryService = Depends(get_category_service),
) -> schemas.CategoryResponse:
    return await service.update_category(category_id, request)


@router.delete("/{category_id}")
async def delete_category(
    category_id: int = Path(ge=1, le=MAX_BIGINT),
    service: CategoryService = Depends(get_category_service),
) -> dict:
    """
    Delete a category. Refused while any ad still references it.
    """
    return await service.delete_category(category_id)
