"""
Script de data migration: asigna UIDs y códigos de cepa a plantas legacy.

Debe ejecutarse DESPUÉS de la migración Alembic 0001_uid_core.
Sin argumentos migra a todos los usuarios con plantas sin UID.
Correrlo dos veces es seguro: las plantas con UID se omiten.

Uso:
    python scripts/migrate_legacy_uids.py [user_id ...]
"""

import asyncio
import logging
import sys
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.config import get_settings
from app.database import async_session_factory, engine
from app.services import migration_service


async def migrate_legacy_uids(user_ids: list[str]) -> int:
    """Migra los usuarios indicados (o todos los pendientes). Retorna el total de errores."""
    total_errors = 0
    async with async_session_factory() as db:
        if not user_ids:
            user_ids = await migration_service.users_needing_migration(db)

        print(f"Procesando {len(user_ids)} usuarios...")

        for user_id in user_ids:
            summary = await migration_service.migrate_user_plants(db, user_id)
            total_errors += summary.errors
            print(
                f"  {user_id}: {summary.migrated} migradas, "
                f"{summary.skipped} omitidas, {summary.errors} errores"
            )
            for detail in summary.details:
                if detail.status == "error":
                    print(f"    ERROR: Plant {detail.plant_id}: {detail.error}")

    await engine.dispose()

    if total_errors > 0:
        print(
            f"\n⚠ {total_errors} plantas no se pudieron migrar."
            "\n  Revise los errores y vuelva a ejecutar el script."
        )
    return total_errors


if __name__ == "__main__":
    logging.basicConfig(level=get_settings().LOG_LEVEL)
    errors = asyncio.run(migrate_legacy_uids(sys.argv[1:]))
    sys.exit(1 if errors else 0)
