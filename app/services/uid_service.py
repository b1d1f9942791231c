"""
Generación de UIDs para plantas nuevas (semillas y clones).

Flujo semilla: registro de cepa → fecha DDMMYY → contador → composición.
Flujo clon:    UID madre + contador por planta madre → composición.

Si un paso falla, la operación completa falla con el error de ese paso.
Un número ya consumido en el contador no se devuelve: queda como hueco.
"""

import logging
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import uid_codec
from app.core.exceptions import MalformedUid, MissingParentReference
from app.models.plant import Plant
from app.schemas.uid import CloneUidResult, SeedUidResult
from app.services import sequence_service, strain_registry_service

logger = logging.getLogger(__name__)


def _ensure_valid(uid: str) -> None:
    validation = uid_codec.validate(uid)
    if not validation.valid:
        raise MalformedUid(uid, validation.error)


async def generate_seed_uid(
    db: AsyncSession,
    user_id: str,
    strain_name: str,
    proposed_strain_code: str | None = None,
    date_born: date | datetime | None = None,
) -> SeedUidResult:
    """UID para una planta de semilla: CODE_DDMMYY_NN."""
    strain = await strain_registry_service.resolve_or_register(
        db, user_id, strain_name, proposed_strain_code
    )

    date_born_str = uid_codec.format_date(date_born or date.today())
    seed_seq = await sequence_service.next_seed_sequence(
        db, user_id, strain.code, date_born_str
    )

    uid = uid_codec.compose_seed_uid(strain.code, date_born_str, seed_seq)
    # Más de 99 semillas por cepa y día no caben en dos dígitos
    _ensure_valid(uid)

    logger.info(f"UID semilla generado: user={user_id} {uid}")
    return SeedUidResult(
        uid=uid,
        strain_code=strain.code,
        is_new_strain=strain.is_new,
        warning=strain.warning,
    )


async def generate_clone_uid(
    db: AsyncSession,
    user_id: str,
    parent_uid: str | None,
    parent_plant_id: str | UUID | None,
) -> CloneUidResult:
    """UID para un clon: <UID madre>_cNN, numerado por planta madre."""
    if not parent_uid:
        raise MissingParentReference("Parent UID is required for clone generation")
    if not parent_plant_id:
        raise MissingParentReference("Parent plant ID is required for clone generation")

    _ensure_valid(parent_uid)

    clone_seq = await sequence_service.next_clone_sequence(
        db, user_id, parent_plant_id
    )

    uid = uid_codec.compose_clone_uid(parent_uid, clone_seq)
    _ensure_valid(uid)

    logger.info(f"UID clon generado: user={user_id} {uid} (madre {parent_plant_id})")
    return CloneUidResult(uid=uid, clone_seq=clone_seq)


async def is_uid_unique(db: AsyncSession, user_id: str, uid: str) -> bool:
    """True si ninguna planta del usuario tiene ya este UID. Solo lectura."""
    result = await db.execute(
        select(Plant.id)
        .where(Plant.user_id == user_id, Plant.unique_id == uid)
        .limit(1)
    )
    return result.first() is None
