"""
Modelo SequenceCounter — Contadores atómicos para UIDs de plantas.

Semillas: clave "<CODE>_<DDMMYY>". Clones: clave "<parent_plant_id>".
El valor solo se modifica con UPDATE condicional (compare-and-swap),
nunca con lectura y escritura separadas.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class CounterKind(str, enum.Enum):
    """Ámbito del contador."""
    SEED = "seed"
    CLONE = "clone"


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    counter_kind: Mapped[CounterKind] = mapped_column(
        Enum(CounterKind, name="counterkind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    counter_key: Mapped[str] = mapped_column(
        String(128), nullable=False,
        comment="CODE_DDMMYY (seed) o ID de la planta madre (clone)"
    )
    value: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "counter_kind", "counter_key",
            name="uq_sequence_counter_user_kind_key"
        ),
    )

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.counter_kind.value}:{self.counter_key} #{self.value}>"
