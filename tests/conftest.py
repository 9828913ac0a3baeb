from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Sequence

import pytest
from fastapi.testclient import TestClient

# `main` builds a module-level app on import; keep its upload dir out of the repo.
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="ads-test-uploads-"))

from core.config import Settings  # noqa: E402
from core.dependencies import get_ad_repository, get_category_repository  # noqa: E402
from core.errors import ConflictError, ValidationError  # noqa: E402
from core.storage import FileStager, StagedFile  # noqa: E402
from main import create_app  # noqa: E402

_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class InMemoryStore:
    """Shared tables for the fake repositories."""

    def __init__(self) -> None:
        self.categories: dict[int, dict[str, Any]] = {}
        self.ads: dict[int, dict[str, Any]] = {}
        self._next_id = 0
        self._tick = 0

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def now(self) -> datetime:
        self._tick += 1
        return _EPOCH + timedelta(seconds=self._tick)

    def add_category(self, name: str, description: str = "") -> int:
        category_id = self.next_id()
        self.categories[category_id] = {
            "id": category_id,
            "name": name,
            "description": description,
            "created_at": self.now(),
        }
        return category_id

    def add_ad(self, category_id: int, *, title: str, description: str = "", image_path: str = "") -> int:
        ad_id = self.next_id()
        self.ads[ad_id] = {
            "id": ad_id,
            "title": title,
            "description": description,
            "category_id": category_id,
            "image_path": image_path or f"/nonexistent/{ad_id}.png",
            "original_file_name": f"{ad_id}.png",
            "mime_type": "image/png",
            "file_size": 10,
            "created_at": self.now(),
        }
        return ad_id

    def joined(self, ad: dict[str, Any]) -> dict[str, Any]:
        return {**ad, "category_name": self.categories[ad["category_id"]]["name"]}


class FakeCategoryRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def list_with_ad_counts(self) -> list[dict[str, Any]]:
        rows = []
        for category in sorted(self.store.categories.values(), key=lambda c: c["name"]):
            count = sum(1 for ad in self.store.ads.values() if ad["category_id"] == category["id"])
            rows.append({**category, "ad_count": count})
        return rows

    async def get(self, category_id: int) -> dict[str, Any] | None:
        row = self.store.categories.get(category_id)
        return dict(row) if row else None

    async def get_by_name(self, name: str) -> dict[str, Any] | None:
        for row in self.store.categories.values():
            if row["name"] == name:
                return dict(row)
        return None

    async def insert(self, *, name: str, description: str) -> dict[str, Any] | None:
        if await self.get_by_name(name) is not None:
            return None
        category_id = self.store.add_category(name, description)
        return dict(self.store.categories[category_id])

    async def update(self, category_id: int, *, name: str, description: str | None) -> dict[str, Any] | None:
        row = self.store.categories.get(category_id)
        if row is None:
            return None
        other = await self.get_by_name(name)
        if other is not None and other["id"] != category_id:
            raise ValidationError("Category already exists")
        row["name"] = name
        if description is not None:
            row["description"] = description
        return dict(row)

    async def delete(self, category_id: int) -> dict[str, Any] | None:
        if any(ad["category_id"] == category_id for ad in self.store.ads.values()):
            raise ConflictError("Cannot delete category with existing ads. Please move or delete all ads first.")
        return self.store.categories.pop(category_id, None)

    async def replace_all(self, categories: Sequence[tuple[str, str]]) -> list[dict[str, Any]]:
        self.store.categories.clear()
        for name, description in categories:
            self.store.add_category(name, description)
        return [dict(row) for row in self.store.categories.values()]


class FakeAdRepository:
    def __init__(self, store: InMemoryStore, *, fail_on_insert: Sequence[int] = ()) -> None:
        self.store = store
        self.fail_on_insert = set(fail_on_insert)
        self.insert_calls = 0

    async def list_ads(self, *, category_id: int | None = None, search: str | None = None) -> list[dict[str, Any]]:
        rows = list(self.store.ads.values())
        if category_id is not None:
            rows = [r for r in rows if r["category_id"] == category_id]
        if search is not None:
            needle = search.lower()
            rows = [r for r in rows if needle in r["title"].lower() or needle in r["description"].lower()]
        rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        return [self.store.joined(r) for r in rows]

    async def get(self, ad_id: int) -> dict[str, Any] | None:
        row = self.store.ads.get(ad_id)
        return self.store.joined(row) if row else None

    async def insert(self, *, title: str, description: str, category_id: int, image: StagedFile) -> dict[str, Any]:
        self.insert_calls += 1
        if self.insert_calls in self.fail_on_insert:
            raise RuntimeError("simulated database failure")
        if category_id not in self.store.categories:
            raise RuntimeError("violates foreign key constraint")
        ad_id = self.store.add_ad(category_id, title=title, description=description, image_path=image.path)
        self.store.ads[ad_id].update(
            original_file_name=image.original_name,
            mime_type=image.mime_type,
            file_size=image.size,
        )
        return self.store.joined(self.store.ads[ad_id])

    async def update(
        self,
        ad_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        category_id: int | None = None,
    ) -> dict[str, Any] | None:
        row = self.store.ads.get(ad_id)
        if row is None:
            return None
        for key, value in (("title", title), ("description", description), ("category_id", category_id)):
            if value is not None:
                row[key] = value
        return self.store.joined(row)

    async def delete(self, ad_id: int) -> bool:
        return self.store.ads.pop(ad_id, None) is not None

    async def count_by_category(self, category_id: int) -> int:
        return sum(1 for ad in self.store.ads.values() if ad["category_id"] == category_id)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir) -> Settings:
    return Settings(upload_dir=str(upload_dir), max_upload_bytes=1024, max_bulk_files=10)


@pytest.fixture
def stager(upload_dir) -> FileStager:
    return FileStager(upload_dir, max_bytes=1024)


@pytest.fixture
def category_repo(store) -> FakeCategoryRepository:
    return FakeCategoryRepository(store)


@pytest.fixture
def ad_repo(store) -> FakeAdRepository:
    return FakeAdRepository(store)


@pytest.fixture
def app(settings, category_repo, ad_repo):
    app = create_app(settings)
    app.dependency_overrides[get_category_repository] = lambda: category_repo
    app.dependency_overrides[get_ad_repository] = lambda: ad_repo
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    # No `with`: the lifespan would try to open a real database pool.
    return TestClient(app)


@pytest.fixture
def uploaded_files(upload_dir):
    """Callable listing the files currently in the upload directory."""

    def _list() -> list[Path]:
        if not upload_dir.exists():
            return []
        return sorted(p for p in upload_dir.iterdir() if p.is_file())

    return _list
