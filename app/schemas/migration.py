from typing import Literal

from pydantic import BaseModel, Field

PlantMigrationStatus = Literal["migrated", "skipped", "error"]


class PlantMigrationResult(BaseModel):
    plant_id: str
    status: PlantMigrationStatus
    kind: Literal["seed", "clone"] | None = None
    uid: str | None = None
    reason: str | None = None
    error: str | None = None


class MigrationSummary(BaseModel):
    status: Literal["completed"] = "completed"
    user_id: str
    total_plants: int = 0
    migrated: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[PlantMigrationResult] = Field(default_factory=list)


class MigrationStatus(BaseModel):
    user_id: str
    needs_migration: bool


class MigrationQueued(BaseModel):
    user_id: str
    task_id: str
