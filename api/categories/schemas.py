"""
Pydantic schemas for category endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CategoryCreateRequest(BaseModel):
    # Presence (including null) is checked by the service.
    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=1000)


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=1000)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    description: str
    created_at: datetime


class CategoryWithCountResponse(CategoryResponse):
    ad_count: int


class CategoryRef(BaseModel):
    """
    The slice of a category that is hydrated into ad responses.
    """

    id: int
    name: str
