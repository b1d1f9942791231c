"""
Modelo StrainRegistryEntry — Registro de cepas por usuario.

Cada cepa se identifica por su nombre normalizado y recibe un código
de 3 letras único dentro del espacio del usuario. El código es inmutable:
una vez registrado se reutiliza en todas las plantas de esa cepa.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class StrainRegistryEntry(Base):
    __tablename__ = "strain_registry"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True
    )
    strain_name_key: Mapped[str] = mapped_column(
        String(200), nullable=False,
        comment="Nombre normalizado (trim + casefold)"
    )
    strain_name: Mapped[str] = mapped_column(String(200), nullable=False)
    strain_code: Mapped[str] = mapped_column(
        String(3), nullable=False,
        comment="3 letras mayúsculas, único por usuario"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "strain_name_key",
            name="uq_strain_registry_user_name"
        ),
        UniqueConstraint(
            "user_id", "strain_code",
            name="uq_strain_registry_user_code"
        ),
    )

    def __repr__(self) -> str:
        return f"<StrainRegistryEntry {self.strain_code} {self.strain_name!r}>"
