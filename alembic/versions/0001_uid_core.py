"""UID core: strain_registry, sequence_counters, plants

Revision ID: 0001_uid_core
Revises:
Create Date: 2026-10-19

Registro de cepas, contadores atómicos y campos de linaje en plantas.
"""
from typing import Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_uid_core'
down_revision: Union[str, None] = None
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def upgrade() -> None:
    # 1. strain_registry
    op.create_table(
        'strain_registry',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('strain_name_key', sa.String(200), nullable=False,
                  comment='Nombre normalizado (trim + casefold)'),
        sa.Column('strain_name', sa.String(200), nullable=False),
        sa.Column('strain_code', sa.String(3), nullable=False,
                  comment='3 letras mayúsculas, único por usuario'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'strain_name_key', name='uq_strain_registry_user_name'),
        sa.UniqueConstraint('user_id', 'strain_code', name='uq_strain_registry_user_code'),
    )
    op.create_index('ix_strain_registry_user_id', 'strain_registry', ['user_id'])

    # 2. sequence_counters
    op.create_table(
        'sequence_counters',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('counter_kind', sa.Enum('seed', 'clone', name='counterkind'), nullable=False),
        sa.Column('counter_key', sa.String(128), nullable=False,
                  comment='CODE_DDMMYY (seed) o ID de la planta madre (clone)'),
        sa.Column('value', sa.Integer, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'counter_kind', 'counter_key',
                            name='uq_sequence_counter_user_kind_key'),
    )

    # 3. plants
    op.create_table(
        'plants',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('strain', sa.String(200), nullable=True),
        sa.Column('origin', sa.String(20), nullable=True, comment='Seed / Clone'),
        sa.Column('is_clone', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('clone_generation', sa.Integer, nullable=False, server_default='0'),
        sa.Column('unique_id', sa.String(120), nullable=True),
        sa.Column('strain_code', sa.String(3), nullable=True),
        sa.Column('strain_name', sa.String(200), nullable=True),
        sa.Column('parent_id', sa.Uuid, sa.ForeignKey('plants.id'), nullable=True),
        sa.Column('migrated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'unique_id', name='uq_plant_user_unique_id'),
    )
    op.create_index('ix_plants_user_id', 'plants', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_plants_user_id', table_name='plants')
    op.drop_table('plants')
    op.drop_table('sequence_counters')
    op.execute("DROP TYPE IF EXISTS counterkind")
    op.drop_index('ix_strain_registry_user_id', table_name='strain_registry')
    op.drop_table('strain_registry')
