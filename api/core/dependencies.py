"""
FastAPI dependencies that hand app-scoped resources to the routers.

The database handle and the file stager live on `app.state`; repositories
and services are built per request on top of them. Tests override the
repository providers with in-memory fakes.
"""

from __future__ import annotations

from fastapi import Depends, Request

from ads.repository import AdRepository
from ads.service import AdService
from categories.repository import CategoryRepository
from categories.service import CategoryService

from .config import Settings
from .db import Database
from .storage import FileStager


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_file_stager(request: Request) -> FileStager:
    return request.app.state.stager


def get_category_repository(db: Database = Depends(get_database)) -> CategoryRepository:
    return CategoryRepository(db)


def get_ad_repository(db: Database = Depends(get_database)) -> AdRepository:
    return AdRepository(db)


def get_category_service(
    categories: CategoryRepository = Depends(get_category_repository),
    ads: AdRepository = Depends(get_ad_repository),
) -> CategoryService:
    return CategoryService(categories, ads)


def get_ad_service(
    ads: AdRepository = Depends(get_ad_repository),
    categories: CategoryRepository = Depends(get_category_repository),
    stager: FileStager = Depends(get_file_stager),
) -> AdService:
    return AdService(ads, categories, stager)
