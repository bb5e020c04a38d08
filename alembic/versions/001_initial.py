"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create usuarios table (staff)
    op.create_table(
        'usuarios',
        sa.Column('id_usuario', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('nombre', sa.String(100), nullable=False),
        sa.Column('apellido', sa.String(100), nullable=False, server_default=''),
        sa.Column('telefono', sa.String(20)),
        sa.Column('rol', sa.String(20), nullable=False, server_default='Mesero'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('fecha_creacion', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('fecha_actualizacion', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create clientes table
    op.create_table(
        'clientes',
        sa.Column('id_cliente', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('nombre', sa.String(100), nullable=False),
        sa.Column('apellido', sa.String(100), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('telefono', sa.String(20)),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('fecha_creacion', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('fecha_actualizacion', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create mesas table
    op.create_table(
        'mesas',
        sa.Column('id_mesa', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('numero_mesa', sa.Integer(), unique=True, nullable=False),
        sa.Column('nombre_mesa', sa.String(100)),
        sa.Column('caracteristicas', sa.Text()),
        sa.Column('capacidad', sa.Integer(), nullable=False),
        sa.Column('ubicacion', sa.String(100)),
        sa.Column('estado', sa.String(20), nullable=False, server_default='disponible'),
        sa.Column('tipo', sa.String(20), nullable=False, server_default='Standard'),
        sa.Column('fecha_creacion', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('capacidad > 0', name='ck_mesas_capacidad_positiva'),
    )

    # Create horarios table (one window per weekday)
    op.create_table(
        'horarios',
        sa.Column('id_horario', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('dia', sa.String(15), unique=True, nullable=False),
        sa.Column('hora_apertura', sa.Time(), nullable=False),
        sa.Column('hora_cierre', sa.Time(), nullable=False),
    )

    # Create reservas table
    op.create_table(
        'reservas',
        sa.Column('id_reserva', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('codigo_reserva', sa.String(16), unique=True, nullable=False),
        sa.Column('id_mesa', sa.Integer(), sa.ForeignKey('mesas.id_mesa'), nullable=False),
        sa.Column('id_cliente', sa.Integer(), sa.ForeignKey('clientes.id_cliente')),
        sa.Column('id_usuario', sa.Integer(), sa.ForeignKey('usuarios.id_usuario')),
        sa.Column('fecha_reserva', sa.Date(), nullable=False),
        sa.Column('hora_reserva', sa.Time(), nullable=False),
        sa.Column('numero_personas', sa.Integer(), nullable=False),
        sa.Column('estado', sa.String(20), nullable=False, server_default='pendiente'),
        sa.Column('tipo_reserva', sa.String(20), nullable=False, server_default='telefono'),
        sa.Column('notas', sa.Text()),
        sa.Column('fecha_creacion', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('fecha_actualizacion', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('numero_personas >= 1', name='ck_reservas_numero_personas'),
        sa.CheckConstraint(
            'id_cliente IS NULL OR id_usuario IS NULL',
            name='ck_reservas_un_solo_titular',
        ),
    )

    # Create historial_reservas table; no FK to reservas so entries survive deletes
    op.create_table(
        'historial_reservas',
        sa.Column('id_historial', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('id_reserva', sa.Integer(), nullable=False),
        sa.Column('codigo_reserva', sa.String(16)),
        sa.Column('id_usuario', sa.Integer(), sa.ForeignKey('usuarios.id_usuario')),
        sa.Column('accion', sa.String(20), nullable=False),
        sa.Column('detalle', sa.Text()),
        sa.Column('fecha_accion', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_reservas_id_cliente', 'reservas', ['id_cliente'])
    op.create_index('ix_reservas_fecha_reserva', 'reservas', ['fecha_reserva'])
    op.create_index(
        'uq_reservas_slot_activa',
        'reservas',
        ['id_mesa', 'fecha_reserva', 'hora_reserva'],
        unique=True,
        postgresql_where=sa.text("estado <> 'cancelada'"),
    )
    op.create_index('ix_historial_reservas_id_reserva', 'historial_reservas', ['id_reserva'])
    op.create_index('ix_historial_reservas_codigo_reserva', 'historial_reservas', ['codigo_reserva'])


def downgrade() -> None:
    op.drop_table('historial_reservas')
    op.drop_table('reservas')
    op.drop_table('horarios')
    op.drop_table('mesas')
    op.drop_table('clientes')
    op.drop_table('usuarios')
