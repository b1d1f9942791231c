from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.strain import StrainCodeItem, StrainResolution, StrainResolveRequest
from app.services import strain_registry_service

router = APIRouter()


@router.get("", response_model=list[StrainCodeItem])
async def list_strain_codes(
    user_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Cepas registradas del usuario (autocompletado)."""
    return await strain_registry_service.list_codes(db, user_id)


@router.post("/resolve", response_model=StrainResolution)
async def resolve_strain(
    user_id: str,
    data: StrainResolveRequest,
    db: AsyncSession = Depends(get_db),
):
    """Devuelve el código de la cepa, registrándola si es nueva."""
    return await strain_registry_service.resolve_or_register(
        db, user_id, data.strain_name, data.proposed_code
    )
