from fastapi import APIRouter

from daz_content_installer.routers.archives import router as archives_router
from daz_content_installer.routers.install import router as install_router
from daz_content_installer.routers.libraries import router as libraries_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(libraries_router)
api_router.include_router(archives_router)
api_router.include_router(install_router)
