"""
Modelo Plant — registro de planta del usuario.

Este subsistema solo escribe los campos de linaje (unique_id, strain_code,
strain_name, parent_id, migrated_at); el resto lo gestiona el CRUD de plantas.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Plant(Base):
    __tablename__ = "plants"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True
    )
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    strain: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # ── Origen (datos legacy) ────────────────────────
    origin: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="Seed / Clone"
    )
    is_clone: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    clone_generation: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ── Linaje (UID) ─────────────────────────────────
    unique_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    strain_code: Mapped[str | None] = mapped_column(String(3), nullable=True)
    strain_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("plants.id"), nullable=True
    )
    migrated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "unique_id", name="uq_plant_user_unique_id"),
    )

    def __repr__(self) -> str:
        return f"<Plant {self.unique_id or self.id} {self.strain!r}>"
