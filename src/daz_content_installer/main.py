import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import Session

import daz_content_installer.models  # noqa: F401 - register all models with SQLModel
from daz_content_installer import database
from daz_content_installer.config import settings
from daz_content_installer.routers import api_router
from daz_content_installer.services.library_service import auto_detect_libraries
from daz_content_installer.services.loaded_archive import loaded_archives


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in ("py7zr", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    database.create_db_and_tables()
    if settings.auto_detect_libraries:
        with Session(database.engine) as session:
            auto_detect_libraries(session)
    logger.info("Application started")
    yield
    logger.info("Shutting down...")
    loaded_archives.clear()
    try:
        database.engine.dispose()
        logger.info("Database engine disposed")
    except Exception:
        logger.exception("Failed to dispose database engine")
    logger.info("Shutdown complete")


app = FastAPI(
    title="DAZ Content Installer",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
