"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

app_role = sa.Enum('tourist', 'admin', 'police', name='app_role')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('raw_user_meta_data', sa.JSON, nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.sql.expression.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('full_name', sa.Text, nullable=False),
        sa.Column('role', app_role, nullable=False, server_default='tourist'),
        sa.Column('phone', sa.Text, nullable=True),
        sa.Column('emergency_contact_name', sa.Text, nullable=True),
        sa.Column('emergency_contact_phone', sa.Text, nullable=True),
        sa.Column('country', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tourist_sessions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.sql.expression.false()),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_location_lat', sa.Numeric(10, 8), nullable=True),
        sa.Column('current_location_lng', sa.Numeric(11, 8), nullable=True),
        sa.Column('safety_status', sa.Text, nullable=True, server_default='safe'),
        sa.Column('last_ping', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # upsert key for "start tracking": one session row per user
        sa.UniqueConstraint('user_id', name='uq_tourist_sessions_user_id'),
    )

    op.create_table(
        'emergency_alerts',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('alert_type', sa.Text, nullable=False, server_default='panic'),
        sa.Column('message', sa.Text, nullable=True),
        sa.Column('location_lat', sa.Numeric(10, 8), nullable=True),
        sa.Column('location_lng', sa.Numeric(11, 8), nullable=True),
        sa.Column('status', sa.Text, nullable=True, server_default='active'),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_by', sa.Integer, sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table('emergency_alerts')
    op.drop_table('tourist_sessions')
    op.drop_table('profiles')
    op.drop_table('users')
    app_role.drop(op.get_bind(), checkfirst=True)
