"""
Contadores atómicos para los UIDs de plantas.

Cada operación sobre un contador es una transacción propia:
    1. SELECT del contador (FOR UPDATE donde el motor lo soporta)
    2. Si no existe → INSERT con el valor inicial
       Si existe    → UPDATE ... SET value=:nuevo WHERE id=:id AND value=v
    3. COMMIT y se devuelve el nuevo valor

Un INSERT duplicado, un UPDATE que no afecta filas o un bloqueo del motor
significan que otro escritor ganó: rollback y reintento con backoff.
Los números consumidos por requests que luego fallan quedan como huecos,
nunca se repiten. Los contadores nunca bajan.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import SequenceAllocationFailed
from app.models.sequence_counter import CounterKind, SequenceCounter

logger = logging.getLogger(__name__)


_CONTENTION_SQLSTATES = {"40001", "40P01"}  # serialization_failure, deadlock_detected


def _is_contention(exc: DBAPIError) -> bool:
    if isinstance(exc, IntegrityError):
        return True
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _CONTENTION_SQLSTATES:
        return True
    return "database is locked" in str(orig)


def seed_counter_key(strain_code: str, date_born: str) -> str:
    return f"{strain_code}_{date_born}"


def clone_counter_key(parent_plant_id: str | UUID) -> str:
    return str(parent_plant_id)


async def _compare_and_swap(
    db: AsyncSession,
    user_id: str,
    kind: CounterKind,
    key: str,
    advance: Callable[[int], int],
) -> int | None:
    """
    Un intento: lleva el contador de `v` a `advance(v)` (una fila nueva
    parte de 0). None si otro escritor cambió el valor entre medio.
    """
    result = await db.execute(
        select(SequenceCounter.id, SequenceCounter.value)
        .where(
            SequenceCounter.user_id == user_id,
            SequenceCounter.counter_kind == kind,
            SequenceCounter.counter_key == key,
        )
        .with_for_update()
    )
    row = result.first()

    if row is None:
        new_value = advance(0)
        db.add(
            SequenceCounter(
                user_id=user_id,
                counter_kind=kind,
                counter_key=key,
                value=new_value,
            )
        )
        await db.flush()
    else:
        counter_id, current = row
        new_value = advance(current)
        if new_value != current:
            updated = await db.execute(
                update(SequenceCounter)
                .where(
                    SequenceCounter.id == counter_id,
                    SequenceCounter.value == current,
                )
                .values(value=new_value)
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount != 1:
                await db.rollback()
                logger.warning(f"CAS fallido en contador {kind.value}:{key} (valor leído {current})")
                return None

    await db.commit()
    return new_value


async def _try_increment(
    db: AsyncSession, user_id: str, kind: CounterKind, key: str, floor: int = 1
) -> int | None:
    """Siguiente número: max(valor + 1, floor). None si hubo conflicto."""
    return await _compare_and_swap(db, user_id, kind, key, lambda v: max(v + 1, floor))


async def _try_raise(
    db: AsyncSession, user_id: str, kind: CounterKind, key: str, floor: int
) -> int | None:
    """Sube el contador a `floor` si está por debajo. None si hubo conflicto."""
    return await _compare_and_swap(db, user_id, kind, key, lambda v: max(v, floor))


async def _with_retries(
    db: AsyncSession,
    user_id: str,
    kind: CounterKind,
    key: str,
    attempt_once: Callable[[], Awaitable[int | None]],
    max_attempts: int | None = None,
) -> int:
    settings = get_settings()
    attempts = max_attempts or settings.SEQUENCE_MAX_ATTEMPTS
    base_delay = settings.SEQUENCE_RETRY_BASE_DELAY

    for attempt in range(1, attempts + 1):
        try:
            value = await attempt_once()
        except DBAPIError as e:
            await db.rollback()
            if not _is_contention(e):
                raise
            logger.warning(
                f"Conflicto en contador {kind.value}:{key} "
                f"(intento {attempt}/{attempts}): {type(e).__name__}"
            )
            value = None

        if value is not None:
            if attempt > 1:
                logger.info(
                    f"Contador {kind.value}:{key} → {value} "
                    f"tras {attempt} intentos"
                )
            return value

        if attempt < attempts:
            delay = base_delay * (2 ** (attempt - 1))
            await asyncio.sleep(delay + random.uniform(0, delay))

    logger.error(
        f"Contador {kind.value}:{key} sin actualizar para user={user_id} "
        f"tras {attempts} intentos"
    )
    raise SequenceAllocationFailed(f"{kind.value}:{key}", attempts)


async def _allocate(
    db: AsyncSession,
    user_id: str,
    kind: CounterKind,
    key: str,
    max_attempts: int | None = None,
    floor: int = 1,
) -> int:
    return await _with_retries(
        db, user_id, kind, key,
        lambda: _try_increment(db, user_id, kind, key, floor),
        max_attempts=max_attempts,
    )


# ── API pública ──────────────────────────────────────

async def next_seed_sequence(
    db: AsyncSession,
    user_id: str,
    strain_code: str,
    date_born: str,
    max_attempts: int | None = None,
    floor: int = 1,
) -> int:
    """
    Siguiente número de semilla para (cepa, fecha DDMMYY).

    `floor` es el mínimo aceptable; la migración lo usa para no quedar por
    debajo de UIDs que ya existen en la colección.
    """
    return await _allocate(
        db, user_id, CounterKind.SEED,
        seed_counter_key(strain_code, date_born),
        max_attempts=max_attempts,
        floor=floor,
    )


async def next_clone_sequence(
    db: AsyncSession,
    user_id: str,
    parent_plant_id: str | UUID,
    max_attempts: int | None = None,
) -> int:
    """Siguiente número de clon para una planta madre concreta."""
    return await _allocate(
        db, user_id, CounterKind.CLONE,
        clone_counter_key(parent_plant_id),
        max_attempts=max_attempts,
    )


async def ensure_at_least(
    db: AsyncSession,
    user_id: str,
    kind: CounterKind,
    key: str,
    floor: int,
    max_attempts: int | None = None,
) -> int:
    """Sube el contador hasta `floor` sin consumir números. Nunca lo baja."""
    return await _with_retries(
        db, user_id, kind, key,
        lambda: _try_raise(db, user_id, kind, key, floor),
        max_attempts=max_attempts,
    )


async def peek_sequence(
    db: AsyncSession, user_id: str, kind: CounterKind, key: str
) -> int:
    """Valor actual del contador (0 si nunca se asignó). Solo lectura."""
    result = await db.execute(
        select(SequenceCounter.value).where(
            SequenceCounter.user_id == user_id,
            SequenceCounter.counter_kind == kind,
            SequenceCounter.counter_key == key,
        )
    )
    return result.scalar_one_or_none() or 0
