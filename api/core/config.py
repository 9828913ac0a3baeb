"""
Environment-driven settings.

Everything is read once at startup into a frozen `Settings` value which the
app keeps on `app.state.settings`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5 MiB
DEFAULT_MAX_BULK_FILES = 10
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _sanitize_database_url(url: str) -> str:
    # asyncpg does not understand libpq's sslmode query parameter.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _split_origins(raw: str) -> tuple[str, ...]:
    return tuple(o.strip() for o in raw.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_command_timeout: int = 30
    upload_dir: str = DEFAULT_UPLOAD_DIR
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    max_bulk_files: int = DEFAULT_MAX_BULK_FILES
    cors_origins: tuple[str, ...] = field(default_factory=lambda: _split_origins(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_upload_bytes <= 0:
            raise RuntimeError("Invalid MAX_UPLOAD_BYTES. It must be > 0.")
        if self.max_bulk_files <= 0:
            raise RuntimeError("Invalid MAX_BULK_FILES. It must be > 0.")
        if self.db_pool_min_size <= 0 or self.db_pool_max_size < self.db_pool_min_size:
            raise RuntimeError("Invalid DB pool size settings.")

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        `DATABASE_URL` is resolved lazily by the database handle so the app
        can be constructed (e.g. in tests) without one.
        """
        return cls(
            database_url=_sanitize_database_url(os.environ.get("DATABASE_URL", "").strip()),
            db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
            db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
            db_command_timeout=_env_int("DB_COMMAND_TIMEOUT", 30),
            upload_dir=_env_str("UPLOAD_DIR", DEFAULT_UPLOAD_DIR),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            max_bulk_files=_env_int("MAX_BULK_FILES", DEFAULT_MAX_BULK_FILES),
            cors_origins=_split_origins(_env_str("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )
