from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ads.router import router as ads_router
from categories.router import router as categories_router
from core.config import Settings
from core.db import Database
from core.errors import install_error_handlers
from core.logging_config import configure_logging
from core.storage import FileStager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Open the DB pool once per process.
    await app.state.db.open()
    try:
        yield
    finally:
        await app.state.db.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Classified Ads API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )
    app.state.stager = FileStager(settings.upload_dir, max_bytes=settings.max_upload_bytes)
    upload_dir = app.state.stager.ensure_upload_dir()

    # Allow the frontend dev server to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(categories_router, tags=["categories"])
    app.include_router(ads_router, tags=["ads"])
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "classified ads api"}

    logger.info("App configured (upload_dir=%s)", upload_dir)
    return app


app = create_app()
