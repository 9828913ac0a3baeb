"""
Upload staging on the local file system.

A staged file is owned by the stager until an ad record claims its path.
Callers that fail after staging must hand the path back to `discard` (or
`discard_many`) so nothing is left orphaned in the upload directory.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from .errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass(frozen=True)
class StagedFile:
    path: str
    original_name: str
    mime_type: str
    size: int


def _resolve_mime_type(upload: UploadFile) -> str:
    content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
    if content_type and content_type != "application/octet-stream":
        return content_type
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return (guessed or content_type or "application/octet-stream").lower()


class FileStager:
    def __init__(self, upload_dir: str | os.PathLike[str], *, max_bytes: int) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def ensure_upload_dir(self) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        return self.upload_dir

    def _target_for(self, declared_name: str) -> Path:
        suffix = Path(declared_name).suffix.lower()
        return self.upload_dir / f"{uuid.uuid4().hex}{suffix}"

    async def stage(self, upload: UploadFile) -> StagedFile:
        """
        Stream one upload into the upload directory.

        Only images are accepted. Oversized content is rejected and the
        partial file removed before the error is raised.
        """
        declared_name = (upload.filename or "").strip()
        if not declared_name:
            raise ValidationError("Missing filename.")

        mime_type = _resolve_mime_type(upload)
        if not mime_type.startswith("image/"):
            raise ValidationError("Only image files are allowed")

        # All blocking file system calls below run in the threadpool.
        await run_in_threadpool(self.ensure_upload_dir)
        target = self._target_for(declared_name)
        size = 0
        out = await run_in_threadpool(open, target, "wb")
        try:
            try:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise ValidationError(f"File too large. Max is {self.max_bytes} bytes.")
                    await run_in_threadpool(out.write, chunk)
            finally:
                await run_in_threadpool(out.close)
        except Exception:
            await run_in_threadpool(target.unlink, missing_ok=True)
            raise

        logger.info("Staged upload %r as %s (%d bytes)", declared_name, target, size)
        return StagedFile(
            path=str(target),
            original_name=declared_name,
            mime_type=mime_type,
            size=size,
        )

    async def stage_many(self, uploads: Sequence[UploadFile]) -> list[StagedFile]:
        """
        Stage uploads in order; on failure nothing staged by this call survives.
        """
        staged: list[StagedFile] = []
        try:
            for upload in uploads:
                staged.append(await self.stage(upload))
        except Exception:
            self.discard_many(f.path for f in staged)
            raise
        return staged

    def discard(self, path: str) -> None:
        """
        Delete a staged file. A file that is already gone is not an error.
        """
        Path(path).unlink(missing_ok=True)
        logger.info("Discarded staged file %s", path)

    def discard_many(self, paths: Iterable[str]) -> None:
        # Rollback path: try every file even if one of them cannot be removed.
        for path in paths:
            try:
                self.discard(path)
            except OSError:
                logger.exception("Failed to discard staged file %s", path)
