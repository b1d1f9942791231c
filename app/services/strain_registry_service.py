"""
Servicio de registro de cepas: nombre de cepa → código de 3 letras por usuario.

Las restricciones únicas (user_id, strain_name_key) y (user_id, strain_code)
arbitran los registros concurrentes; aquí no se reintenta nada.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import uid_codec
from app.core.exceptions import (
    InvalidStrainCode,
    StrainCodeTaken,
    ValidationException,
)
from app.models.strain_registry import StrainRegistryEntry
from app.schemas.strain import StrainCodeItem, StrainResolution

logger = logging.getLogger(__name__)


def _existing_code_warning(existing_code: str) -> str:
    return (
        f'This strain already uses code "{existing_code}". '
        "We've applied the existing code to keep IDs consistent."
    )


def _resolution_for_existing(
    existing_code: str, proposed_code: str | None
) -> StrainResolution:
    normalized = uid_codec.normalize_strain_code(proposed_code)
    if normalized and normalized != existing_code:
        return StrainResolution(
            code=existing_code,
            is_new=False,
            warning=_existing_code_warning(existing_code),
        )
    return StrainResolution(code=existing_code, is_new=False)


# ── Lecturas ─────────────────────────────────────────

async def get_strain_code(
    db: AsyncSession, user_id: str, strain_name: str
) -> str | None:
    """Código registrado para la cepa, o None si no existe."""
    name_key = uid_codec.normalize_strain_name(strain_name)
    result = await db.execute(
        select(StrainRegistryEntry.strain_code).where(
            StrainRegistryEntry.user_id == user_id,
            StrainRegistryEntry.strain_name_key == name_key,
        )
    )
    return result.scalar_one_or_none()


async def is_strain_code_taken(db: AsyncSession, user_id: str, code: str) -> bool:
    result = await db.execute(
        select(StrainRegistryEntry.id).where(
            StrainRegistryEntry.user_id == user_id,
            StrainRegistryEntry.strain_code == code,
        )
    )
    return result.first() is not None


async def list_codes(db: AsyncSession, user_id: str) -> list[StrainCodeItem]:
    """Todas las cepas del usuario, para autocompletado en la UI."""
    result = await db.execute(
        select(StrainRegistryEntry)
        .where(StrainRegistryEntry.user_id == user_id)
        .order_by(StrainRegistryEntry.strain_name_key)
    )
    return [
        StrainCodeItem.model_validate(entry)
        for entry in result.scalars().all()
    ]


# ── Registro ─────────────────────────────────────────

async def resolve_or_register(
    db: AsyncSession,
    user_id: str,
    strain_name: str,
    proposed_code: str | None = None,
) -> StrainResolution:
    """
    Devuelve el código de la cepa, registrándola si es nueva.

    - Cepa existente: se usa su código; si el propuesto difiere se devuelve
      un warning (no es error).
    - Cepa nueva: el código propuesto es obligatorio, se normaliza, valida
      y debe estar libre para el usuario.
    """
    name_key = uid_codec.normalize_strain_name(strain_name)
    if not name_key:
        raise ValidationException("Strain name is required")

    existing_code = await get_strain_code(db, user_id, strain_name)
    if existing_code:
        return _resolution_for_existing(existing_code, proposed_code)

    if not proposed_code or not proposed_code.strip():
        raise InvalidStrainCode("Strain code is required for new strains")

    code = uid_codec.normalize_strain_code(proposed_code)
    validation = uid_codec.validate_strain_code(code)
    if not validation.valid:
        raise InvalidStrainCode(validation.error)

    if await is_strain_code_taken(db, user_id, code):
        raise StrainCodeTaken(code)

    display_name = " ".join(strain_name.split())
    entry = StrainRegistryEntry(
        user_id=user_id,
        strain_name_key=name_key,
        strain_name=display_name,
        strain_code=code,
    )
    db.add(entry)
    try:
        await db.commit()
    except IntegrityError:
        # Otro request registró la misma cepa o el mismo código primero
        await db.rollback()
        existing_code = await get_strain_code(db, user_id, strain_name)
        if existing_code:
            return _resolution_for_existing(existing_code, proposed_code)
        raise StrainCodeTaken(code)

    logger.info(f"Cepa registrada: user={user_id} '{display_name}' → {code}")
    return StrainResolution(code=code, is_new=True)
