"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from app.api.v1.migration import router as migration_router
from app.api.v1.strains import router as strains_router
from app.api.v1.uids import codec_router as uid_codec_router
from app.api.v1.uids import router as uids_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    strains_router,
    prefix="/users/{user_id}/strains",
    tags=["Registro de Cepas"],
)

api_v1_router.include_router(
    uids_router,
    prefix="/users/{user_id}/uids",
    tags=["UIDs de Plantas"],
)

api_v1_router.include_router(
    uid_codec_router,
    prefix="/uids",
    tags=["UIDs de Plantas"],
)

api_v1_router.include_router(
    migration_router,
    prefix="/users/{user_id}/migration",
    tags=["Migración Legacy"],
)
