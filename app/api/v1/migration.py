from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.migration import MigrationQueued, MigrationStatus, MigrationSummary
from app.services import migration_service

router = APIRouter()


@router.get("", response_model=MigrationStatus)
async def get_migration_status(
    user_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Indica si el usuario tiene plantas legacy sin UID."""
    return MigrationStatus(
        user_id=user_id,
        needs_migration=await migration_service.needs_migration(db, user_id),
    )


@router.post(
    "",
    response_model=MigrationSummary,
    responses={202: {"model": MigrationQueued}},
)
async def run_migration(
    user_id: str,
    background: bool = Query(False, description="Encolar en Celery en lugar de ejecutar en línea"),
    db: AsyncSession = Depends(get_db),
):
    """Ejecuta la migración de UIDs legacy del usuario."""
    if background:
        from app.tasks.migration_tasks import migrate_user_plants_task

        task = migrate_user_plants_task.delay(user_id)
        return JSONResponse(
            status_code=202,
            content=MigrationQueued(user_id=user_id, task_id=task.id).model_dump(),
        )
    return await migration_service.migrate_user_plants(db, user_id)
