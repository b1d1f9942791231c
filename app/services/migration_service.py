"""
Migración de plantas legacy: asigna UID y código de cepa a registros
creados antes del sistema de UIDs.

Cada planta termina en uno de tres estados: migrated, skipped o error.
Un error en una planta se registra y el batch continúa.

Numeración: las semillas se asignan con los mismos contadores atómicos que
usa la creación en vivo (sequence_service), con un piso igual al mayor
número ya presente en la colección del usuario. Al terminar, los
contadores de semilla y de clon se suben hasta los UIDs existentes, así
que ninguna asignación posterior repite un UID migrado.
"""

import asyncio
import itertools
import logging
import random
import string
from datetime import date, datetime, timezone
from typing import Iterator

from sqlalchemy import distinct, select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core import uid_codec
from app.core.exceptions import PerPlantMigrationError, StrainCodeTaken
from app.models.plant import Plant
from app.models.sequence_counter import CounterKind
from app.schemas.migration import MigrationSummary, PlantMigrationResult
from app.services import sequence_service, strain_registry_service

logger = logging.getLogger(__name__)

UNKNOWN_STRAIN = "Unknown Strain"
_RANDOM_CANDIDATES = 50


class _MigrationRun:
    """Estado local de una corrida: códigos elegidos y contadores."""

    def __init__(self, used_codes: set[str], rng: random.Random | None = None):
        self.strain_codes: dict[str, str] = {}  # strain_name_key -> code
        self.used_codes = used_codes
        self.seed_counters: dict[tuple[str, str], int] = {}
        self.clone_counters: dict[str, int] = {}
        self.plant_ids: dict[str, str] = {}  # unique_id -> plant id
        self.rng = rng or random.Random()

    def observe_uid(self, uid: str | None, plant_id=None) -> None:
        """Siembra los contadores con un UID ya asignado."""
        if not uid_codec.validate(uid).valid:
            return
        if plant_id is not None:
            self.plant_ids[uid] = str(plant_id)
        parsed = uid_codec.parse(uid)
        key = (parsed.strain_code, parsed.date_born)
        self.seed_counters[key] = max(self.seed_counters.get(key, 0), int(parsed.seed_seq))

        segments = uid.split("_")
        for i in range(3, len(segments)):
            base = "_".join(segments[:i])
            self.clone_counters[base] = max(
                self.clone_counters.get(base, 0), int(segments[i][1:])
            )

    def next_seed(self, strain_code: str, date_born: str) -> int:
        key = (strain_code, date_born)
        self.seed_counters[key] = self.seed_counters.get(key, 0) + 1
        return self.seed_counters[key]

    def next_clone(self, base_uid: str) -> int:
        self.clone_counters[base_uid] = self.clone_counters.get(base_uid, 0) + 1
        return self.clone_counters[base_uid]


def _is_clone_origin(plant: Row) -> bool:
    return bool(
        plant.is_clone
        or (plant.origin or "").strip().lower() == "clone"
        or (plant.clone_generation or 0) > 0
    )


def _code_candidates(base: str, rng: random.Random) -> Iterator[str]:
    """
    Candidatos en orden: el código derivado, luego variando la última
    letra, luego letras al azar y por último el espacio completo AAA-ZZZ.
    """
    yield base
    for letter in string.ascii_uppercase:
        yield base[:2] + letter
    for _ in range(_RANDOM_CANDIDATES):
        yield base[0] + rng.choice(string.ascii_uppercase) + rng.choice(string.ascii_uppercase)
    for combo in itertools.product(string.ascii_uppercase, repeat=3):
        yield "".join(combo)


async def _choose_strain_code(
    db: AsyncSession, user_id: str, strain_name: str, run: _MigrationRun
) -> str:
    name_key = uid_codec.normalize_strain_name(strain_name)
    if name_key in run.strain_codes:
        return run.strain_codes[name_key]

    existing = await strain_registry_service.get_strain_code(db, user_id, strain_name)
    if existing:
        run.strain_codes[name_key] = existing
        return existing

    for candidate in _code_candidates(uid_codec.derive_strain_code(strain_name), run.rng):
        if candidate in run.used_codes:
            continue
        if not uid_codec.validate_strain_code(candidate).valid:
            continue
        try:
            resolution = await strain_registry_service.resolve_or_register(
                db, user_id, strain_name, candidate
            )
        except StrainCodeTaken:
            run.used_codes.add(candidate)
            continue
        run.strain_codes[name_key] = resolution.code
        run.used_codes.add(resolution.code)
        return resolution.code

    raise RuntimeError("No quedan códigos de cepa disponibles")


async def _migrate_plant(
    db: AsyncSession, user_id: str, plant: Row, run: _MigrationRun
) -> PlantMigrationResult:
    if plant.unique_id:
        return PlantMigrationResult(
            plant_id=str(plant.id),
            status="skipped",
            reason="Already has UID",
            uid=plant.unique_id,
        )

    try:
        strain_name = (plant.strain or "").strip() or UNKNOWN_STRAIN
        strain_code = await _choose_strain_code(db, user_id, strain_name, run)

        date_born = uid_codec.format_date(plant.created_at or date.today())
        seed_seq = await sequence_service.next_seed_sequence(
            db, user_id, strain_code, date_born,
            floor=run.next_seed(strain_code, date_born),
        )

        uid = uid_codec.compose_seed_uid(strain_code, date_born, seed_seq)
        kind = "seed"
        if _is_clone_origin(plant):
            # El vínculo con la madre original no es recuperable
            uid = uid_codec.compose_clone_uid(uid, run.next_clone(uid))
            kind = "clone"

        validation = uid_codec.validate(uid)
        if not validation.valid:
            raise ValueError(f"UID generado inválido {uid}: {validation.error}")

        result = await db.execute(
            update(Plant)
            .where(
                Plant.id == plant.id,
                Plant.user_id == user_id,
                Plant.unique_id.is_(None),
            )
            .values(
                unique_id=uid,
                strain_code=strain_code,
                strain_name=strain_name,
                parent_id=None,
                migrated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            return PlantMigrationResult(
                plant_id=str(plant.id),
                status="skipped",
                reason="UID assigned concurrently",
            )
        await db.commit()
        run.observe_uid(uid, plant.id)
    except Exception as e:
        raise PerPlantMigrationError(plant.id, e) from e

    return PlantMigrationResult(
        plant_id=str(plant.id), status="migrated", kind=kind, uid=uid
    )


async def _sync_counters(db: AsyncSession, user_id: str, run: _MigrationRun) -> None:
    """Sube los contadores vivos hasta los números vistos en la colección."""
    for (strain_code, date_born), value in run.seed_counters.items():
        await sequence_service.ensure_at_least(
            db, user_id, CounterKind.SEED,
            sequence_service.seed_counter_key(strain_code, date_born), value,
        )

    # Los clones en vivo se numeran por planta madre; solo aplica a bases
    # que son UIDs de plantas reales
    for base_uid, value in run.clone_counters.items():
        parent_id = run.plant_ids.get(base_uid)
        if parent_id is None:
            continue
        await sequence_service.ensure_at_least(
            db, user_id, CounterKind.CLONE,
            sequence_service.clone_counter_key(parent_id), value,
        )


# ── API pública ──────────────────────────────────────

async def needs_migration(db: AsyncSession, user_id: str) -> bool:
    """True si el usuario tiene plantas sin UID."""
    result = await db.execute(
        select(Plant.id)
        .where(Plant.user_id == user_id, Plant.unique_id.is_(None))
        .limit(1)
    )
    return result.first() is not None


async def users_needing_migration(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(distinct(Plant.user_id))
        .where(Plant.unique_id.is_(None))
        .order_by(Plant.user_id)
    )
    return list(result.scalars().all())


async def migrate_user_plants(
    db: AsyncSession, user_id: str, rng: random.Random | None = None
) -> MigrationSummary:
    """Migra todas las plantas del usuario y devuelve el resumen."""
    settings = get_settings()
    logger.info(f"Iniciando migración de UIDs para user={user_id}")

    result = await db.execute(
        select(
            Plant.id,
            Plant.strain,
            Plant.origin,
            Plant.is_clone,
            Plant.clone_generation,
            Plant.unique_id,
            Plant.created_at,
        )
        .where(Plant.user_id == user_id)
        .order_by(Plant.created_at, Plant.id)
    )
    plants = result.all()

    summary = MigrationSummary(user_id=user_id, total_plants=len(plants))
    if not plants:
        return summary

    registered = await strain_registry_service.list_codes(db, user_id)
    run = _MigrationRun({item.strain_code for item in registered}, rng)
    for plant in plants:
        run.observe_uid(plant.unique_id, plant.id)

    for plant in plants:
        try:
            plant_result = await _migrate_plant(db, user_id, plant, run)
        except PerPlantMigrationError as e:
            await db.rollback()
            logger.warning(f"Error migrando planta: {e}")
            plant_result = PlantMigrationResult(
                plant_id=str(plant.id), status="error", error=str(e.cause)
            )

        summary.details.append(plant_result)
        if plant_result.status == "migrated":
            summary.migrated += 1
        elif plant_result.status == "skipped":
            summary.skipped += 1
        else:
            summary.errors += 1

        if settings.MIGRATION_THROTTLE_SECONDS > 0:
            await asyncio.sleep(settings.MIGRATION_THROTTLE_SECONDS)

    await _sync_counters(db, user_id, run)

    logger.info(
        f"Migración completada user={user_id}: "
        f"{summary.migrated} migradas, {summary.skipped} omitidas, "
        f"{summary.errors} errores de {summary.total_plants}"
    )
    return summary
