"""initial_schema

Revision ID: 3c7d2e91a4b0
Revises:
Create Date: 2026-10-18 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = '3c7d2e91a4b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'user_role': ('user', 'admin'),
    'weather_notification_period_enum': ('current', '24h', '3d', 'week', 'all'),
    'invite_status_enum': ('pending', 'accepted', 'declined'),
    'weather_alert_source_enum': ('WEATHER_API', 'SENSORS', 'BOTH'),
    'growth_stage_enum': ('SEEDLING', 'VEGETATIVE', 'FLOWERING', 'HARVEST', 'DRYING', 'CURING'),
    'log_type_enum': (
        'GENERAL', 'WATERING', 'FEEDING', 'PRUNING', 'TRAINING', 'TRANSPLANT', 'HARVEST',
        'INSPECTION', 'PEST_DISEASE', 'TREATMENT', 'ENVIRONMENTAL', 'GERMINATION', 'CLONING',
        'FLUSHING', 'DEFOLIATION', 'STRESS', 'CUSTOM',
        'WEATHER_ALERT', 'MAINTENANCE_TASK', 'CHANGE_LOG',
    ),
    'notification_type_enum': (
        'WEATHER_ALERT', 'WEATHER_FORECAST_ALERT', 'MAINTENANCE_DUE', 'SENSOR_ALERT', 'GARDEN_INVITE',
    ),
    'pipeline_status_enum': ('running', 'success', 'failed', 'skipped'),
    'reading_source_enum': ('CRON', 'MANUAL'),
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; growth_stage_enum is shared by two tables
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', _enum('user_role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('timezone', sa.String(length=50), nullable=True),
        sa.Column('zip_code', sa.String(length=10), nullable=True),
        sa.Column('weather_notification_period', _enum('weather_notification_period_enum'), nullable=False),
        sa.Column('encrypted_govee_api_key', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'gardens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('creator_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('zipcode', sa.String(length=10), nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=True),
        sa.Column('weather_status', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_gardens_creator_id', 'gardens', ['creator_id'])

    op.create_table(
        'garden_members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('added_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('garden_id', 'user_id', name='uq_garden_members_garden_user'),
    )
    op.create_index('ix_garden_members_garden_id', 'garden_members', ['garden_id'])
    op.create_index('ix_garden_members_user_id', 'garden_members', ['user_id'])

    op.create_table(
        'garden_invites',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('inviter_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('status', _enum('invite_status_enum'), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint('garden_id', 'email', name='uq_garden_invites_garden_email'),
    )
    op.create_index('ix_garden_invites_garden_id', 'garden_invites', ['garden_id'])
    op.create_index('ix_garden_invites_email', 'garden_invites', ['email'])

    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=False),
        sa.Column('creator_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('room_type', sa.String(length=50), nullable=True),
        sa.Column('width', sa.Float(), nullable=True),
        sa.Column('length', sa.Float(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_rooms_garden_id', 'rooms', ['garden_id'])

    op.create_table(
        'zones',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('creator_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('zone_type', sa.String(length=50), nullable=True),
        sa.Column('temp_min', sa.Float(), nullable=True),
        sa.Column('temp_max', sa.Float(), nullable=True),
        sa.Column('humidity_min', sa.Float(), nullable=True),
        sa.Column('humidity_max', sa.Float(), nullable=True),
        sa.Column('weather_alert_source', _enum('weather_alert_source_enum'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_zones_room_id', 'zones', ['room_id'])

    op.create_table(
        'plants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('species', sa.String(length=200), nullable=True),
        sa.Column('variety', sa.String(length=200), nullable=True),
        sa.Column('plant_type', sa.String(length=50), nullable=True),
        sa.Column('stage', _enum('growth_stage_enum'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('harvest_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sensitivities', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    for column in ('garden_id', 'room_id', 'zone_id', 'user_id'):
        op.create_index(f'ix_plants_{column}', 'plants', [column])

    op.create_table(
        'seeds',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('variety', sa.String(length=200), nullable=False),
        sa.Column('strain', sa.String(length=200), nullable=True),
        sa.Column('batch', sa.String(length=100), nullable=True),
        sa.Column('breeder', sa.String(length=200), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('date_acquired', sa.Date(), nullable=True),
        sa.Column('date_harvested', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_seeds_user_id', 'seeds', ['user_id'])

    op.create_table(
        'equipment',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('equipment_type', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    for column in ('garden_id', 'room_id', 'zone_id'):
        op.create_index(f'ix_equipment_{column}', 'equipment', [column])

    op.create_table(
        'maintenance_tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'equipment_id', sa.Integer(), sa.ForeignKey('equipment.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('frequency', sa.String(length=50), nullable=False),
        sa.Column('next_due_date', sa.Date(), nullable=False),
        sa.Column('last_completed_date', sa.Date(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_maintenance_tasks_equipment_id', 'maintenance_tasks', ['equipment_id'])
    op.create_index('ix_maintenance_tasks_next_due_date', 'maintenance_tasks', ['next_due_date'])

    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('garden_id', sa.Integer(), sa.ForeignKey('gardens.id', ondelete='CASCADE'), nullable=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id', ondelete='SET NULL'), nullable=True),
        sa.Column('plant_id', sa.Integer(), sa.ForeignKey('plants.id', ondelete='SET NULL'), nullable=True),
        sa.Column(
            'equipment_id', sa.Integer(), sa.ForeignKey('equipment.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('log_type', _enum('log_type_enum'), nullable=False),
        sa.Column('stage', _enum('growth_stage_enum'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('log_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('image_urls', sa.JSON(), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('humidity', sa.Float(), nullable=True),
        sa.Column('vpd', sa.Float(), nullable=True),
        sa.Column('co2', sa.Float(), nullable=True),
        sa.Column('water_amount', sa.Float(), nullable=True),
        sa.Column('water_unit', sa.String(length=20), nullable=True),
        sa.Column('water_ph', sa.Float(), nullable=True),
        sa.Column('water_ppm', sa.Float(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        *_timestamps(updated=False),
    )
    for column in ('user_id', 'garden_id', 'room_id', 'zone_id', 'plant_id', 'equipment_id', 'log_type', 'log_date'):
        op.create_index(f'ix_logs_{column}', 'logs', [column])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('notification_type', _enum('notification_type_enum'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=False),
        sa.Column('dedup_key', sa.String(length=200), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
    )
    for column in ('user_id', 'notification_type', 'dedup_key', 'created_at'):
        op.create_index(f'ix_notifications_{column}', 'notifications', [column])

    op.create_table(
        'govee_devices',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id', ondelete='SET NULL'), nullable=True),
        sa.Column('plant_id', sa.Integer(), sa.ForeignKey('plants.id', ondelete='SET NULL'), nullable=True),
        sa.Column('device_id', sa.String(length=100), nullable=False),
        sa.Column('sku', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('min_temp', sa.Float(), nullable=True),
        sa.Column('max_temp', sa.Float(), nullable=True),
        sa.Column('min_humidity', sa.Float(), nullable=True),
        sa.Column('max_humidity', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_online', sa.Boolean(), nullable=False),
        sa.Column('battery_level', sa.Integer(), nullable=True),
        sa.Column('last_state', sa.JSON(), nullable=True),
        sa.Column('last_state_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('user_id', 'device_id', name='uq_govee_devices_user_device'),
    )
    op.create_index('ix_govee_devices_user_id', 'govee_devices', ['user_id'])
    op.create_index('ix_govee_devices_zone_id', 'govee_devices', ['zone_id'])

    op.create_table(
        'govee_readings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'device_id', sa.Integer(), sa.ForeignKey('govee_devices.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('humidity', sa.Float(), nullable=True),
        sa.Column('vpd', sa.Float(), nullable=True),
        sa.Column('battery_level', sa.Integer(), nullable=True),
        sa.Column('source', _enum('reading_source_enum'), nullable=False),
        sa.Column('raw_data', sa.JSON(), nullable=True),
    )
    op.create_index('ix_govee_readings_device_id', 'govee_readings', ['device_id'])
    op.create_index('ix_govee_readings_timestamp', 'govee_readings', ['timestamp'])

    op.create_table(
        'pipeline_runs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('pipeline_name', sa.String(length=100), nullable=False),
        sa.Column('status', _enum('pipeline_status_enum'), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_ms', sa.Integer(), nullable=True),
        sa.Column('records_processed', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
    )
    op.create_index('ix_pipeline_runs_pipeline_name', 'pipeline_runs', ['pipeline_name'])

    op.create_table(
        'api_request_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('method', sa.String(length=10), nullable=False),
        sa.Column('endpoint', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('status_code', sa.Integer(), nullable=False),
        sa.Column('latency_ms', sa.Integer(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
    )
    op.create_index('ix_api_request_logs_timestamp', 'api_request_logs', ['timestamp'])


def downgrade() -> None:
    for table in (
        'api_request_logs', 'pipeline_runs', 'govee_readings', 'govee_devices', 'notifications', 'logs',
        'maintenance_tasks', 'equipment', 'seeds', 'plants', 'zones', 'rooms', 'garden_invites',
        'garden_members', 'gardens', 'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
