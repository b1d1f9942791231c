from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import uid_codec
from app.database import get_db
from app.schemas.uid import (
    CloneUidRequest, CloneUidResult,
    ParsedUid, SeedUidRequest, SeedUidResult, UidUniqueness, UidValidation,
)
from app.services import uid_service

# Rutas con user_id: /users/{user_id}/uids
router = APIRouter()

# Rutas sin estado: /uids
codec_router = APIRouter()


@router.post("/seed", response_model=SeedUidResult, status_code=201)
async def create_seed_uid(
    user_id: str,
    data: SeedUidRequest,
    db: AsyncSession = Depends(get_db),
):
    """Genera el UID de una planta de semilla."""
    return await uid_service.generate_seed_uid(
        db, user_id, data.strain_name, data.proposed_strain_code, data.date_born
    )


@router.post("/clone", response_model=CloneUidResult, status_code=201)
async def create_clone_uid(
    user_id: str,
    data: CloneUidRequest,
    db: AsyncSession = Depends(get_db),
):
    """Genera el UID de un clon a partir de su planta madre."""
    return await uid_service.generate_clone_uid(
        db, user_id, data.parent_uid, data.parent_plant_id
    )


@codec_router.get("/{uid}/validate", response_model=UidValidation)
async def validate_uid(uid: str):
    return uid_codec.validate(uid)


@codec_router.get("/{uid}/parse", response_model=ParsedUid)
async def parse_uid(uid: str):
    return uid_codec.parse(uid)


@router.get("/{uid}/unique", response_model=UidUniqueness)
async def check_uid_unique(
    user_id: str,
    uid: str,
    db: AsyncSession = Depends(get_db),
):
    """Indica si el UID está libre en la colección del usuario."""
    return UidUniqueness(
        uid=uid, unique=await uid_service.is_uid_unique(db, user_id, uid)
    )
