"""
Pydantic schemas for ad endpoints.

Multipart form fields arrive as loose strings; the request models below turn
them into typed input before any upload is written to disk.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from categories.schemas import CategoryRef
from core.db import MAX_BIGINT
from core.errors import ValidationError


def _category_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("Invalid category")
    if isinstance(value, int):
        category_id = value
    else:
        raw = str(value or "").strip()
        if not raw.isdecimal():
            raise ValueError("Invalid category")
        category_id = int(raw)
    if not 1 <= category_id <= MAX_BIGINT:
        raise ValueError("Invalid category")
    return category_id


def _form_text(item: Any) -> str | None:
    # Falsy JSON items (null, 0, false, "") count as missing.
    if not item:
        return None
    if isinstance(item, str):
        return item
    return json.dumps(item)


def _json_string_list(raw: str | None, field_name: str) -> list[str | None]:
    if raw is None or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid {field_name}: expected a JSON array.") from exc
    if not isinstance(value, list):
        raise ValidationError(f"Invalid {field_name}: expected a JSON array.")
    return [_form_text(item) for item in value]


class AdCreateRequest(BaseModel):
    title: str = Field(default="", max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    category: int

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> int:
        return _category_id(value)


class BulkAdCreateRequest(BaseModel):
    titles: list[str | None] = Field(default_factory=list)
    descriptions: list[str | None] = Field(default_factory=list)
    category: int

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> int:
        return _category_id(value)

    @classmethod
    def from_form(
        cls,
        *,
        titles: str | None,
        descriptions: str | None,
        category: str | None,
    ) -> "BulkAdCreateRequest":
        return cls(
            titles=_json_string_list(titles, "titles"),
            descriptions=_json_string_list(descriptions, "descriptions"),
            category=category,
        )

    def title_at(self, index: int) -> str:
        """
        Trimmed title for the index-th file, falling back to "Ad {n}".
        """
        raw = self.titles[index] if index < len(self.titles) else None
        title = (raw or "").strip()
        return title or f"Ad {index + 1}"

    def description_at(self, index: int) -> str:
        raw = self.descriptions[index] if index < len(self.descriptions) else None
        return (raw or "").strip()


class AdUpdateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    category: int | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> int | None:
        # Falsy values mean "leave the category as it is".
        if value in (None, "", 0):
            return None
        return _category_id(value)


class AdFilter(BaseModel):
    category: int | None = None
    search: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> int | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return _category_id(value)

    @field_validator("search")
    @classmethod
    def _empty_search(cls, value: str | None) -> str | None:
        return value or None


class AdResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    description: str
    category: CategoryRef
    image_path: str
    original_file_name: str
    mime_type: str
    file_size: int
    created_at: datetime
