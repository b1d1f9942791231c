"""
Modelos SQLAlchemy — exportar todos para que Alembic los detecte.
"""

from app.models.plant import Plant
from app.models.sequence_counter import CounterKind, SequenceCounter
from app.models.strain_registry import StrainRegistryEntry
