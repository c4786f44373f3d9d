"""calendar_notes_and_log_visibility

Revision ID: 8f41b6c05d27
Revises: 3c7d2e91a4b0
Create Date: 2026-10-18 14:37:05.512930

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '8f41b6c05d27'
down_revision: Union[str, None] = '3c7d2e91a4b0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'calendar_notes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id', ondelete='SET NULL'), nullable=True),
        sa.Column('note_date', sa.Date(), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_calendar_notes_user_id', 'calendar_notes', ['user_id'])
    op.create_index('ix_calendar_notes_garden_id', 'calendar_notes', ['garden_id'])
    op.create_index('ix_calendar_notes_note_date', 'calendar_notes', ['note_date'])

    op.create_table(
        'garden_log_visibility',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=False),
        sa.Column('show_logs', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'garden_id', name='uq_garden_log_visibility_user_garden'),
    )
    op.create_index('ix_garden_log_visibility_user_id', 'garden_log_visibility', ['user_id'])
    op.create_index('ix_garden_log_visibility_garden_id', 'garden_log_visibility', ['garden_id'])


def downgrade() -> None:
    op.drop_table('garden_log_visibility')
    op.drop_table('calendar_notes')
