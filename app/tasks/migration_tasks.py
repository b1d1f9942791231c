"""
Tareas Celery para la migración de UIDs legacy.
"""

import asyncio
import logging

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=30,
    name="uid.migrate_user_plants",
)
def migrate_user_plants_task(self, user_id: str) -> dict:
    """
    Migra en background las plantas sin UID de un usuario.
    Reintentar es seguro: las plantas ya migradas se omiten.
    """

    async def _process() -> dict:
        from app.database import async_session_factory
        from app.services import migration_service

        async with async_session_factory() as db:
            summary = await migration_service.migrate_user_plants(db, user_id)
        return summary.model_dump(exclude={"details"})

    try:
        return asyncio.run(_process())
    except Exception as exc:
        logger.error(f"Error migrando plantas de user={user_id}: {exc}")
        raise self.retry(exc=exc)


@celery_app.task(name="uid.migrate_pending_users")
def migrate_pending_users():
    """
    Encola la migración de cada usuario que aún tiene plantas sin UID.
    """

    async def _process() -> list[str]:
        from app.database import async_session_factory
        from app.services import migration_service

        async with async_session_factory() as db:
            return await migration_service.users_needing_migration(db)

    user_ids = asyncio.run(_process())
    for user_id in user_ids:
        migrate_user_plants_task.delay(user_id)

    if user_ids:
        logger.info(f"Encolada migración de UIDs para {len(user_ids)} usuarios")
