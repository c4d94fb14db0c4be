"""Create trip map schema

Revision ID: 001_initial_trip_schema
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_trip_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('ADMIN', 'USER', name='userrole')
transport_mode = sa.Enum(
    'DRIVING_CAR', 'CYCLING_REGULAR', 'FOOT_WALKING', 'PUBLIC_TRANSPORT', name='transportmode'
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _planned_dates() -> list[sa.Column]:
    return [
        sa.Column('planned_start_year', sa.Integer()),
        sa.Column('planned_start_month', sa.Integer()),
        sa.Column('planned_start_day', sa.Integer()),
        sa.Column('planned_end_year', sa.Integer()),
        sa.Column('planned_end_month', sa.Integer()),
        sa.Column('planned_end_day', sa.Integer()),
        sa.Column('planned_duration_days', sa.Integer()),
    ]


def upgrade() -> None:
    """
    여행 지도 스키마 생성
    users, user_invitations, trips, trip_user, markers, tours, marker_tour, routes, mapbox_requests
    """

    # =============================================================================
    # 사용자
    # =============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('email_verified_at', sa.DateTime(timezone=True)),
        sa.Column('last_login_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_invitations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('invited_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_user_invitations_email', 'user_invitations', ['email'], unique=True)
    op.create_index('ix_user_invitations_token', 'user_invitations', ['token'], unique=True)

    # =============================================================================
    # 여행 및 공유
    # =============================================================================
    op.create_table(
        'trips',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('country', sa.String(2)),
        sa.Column('notes', sa.Text()),
        sa.Column('viewport_latitude', sa.Float()),
        sa.Column('viewport_longitude', sa.Float()),
        sa.Column('viewport_zoom', sa.Float()),
        sa.Column('viewport_static_image_url', sa.String(2048)),
        *_planned_dates(),
        sa.Column('invitation_token', sa.String(64)),
        *_timestamps(),
    )
    op.create_index('ix_trips_user_id', 'trips', ['user_id'])
    op.create_index('ix_trips_invitation_token', 'trips', ['invitation_token'], unique=True)

    op.create_table(
        'trip_user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('collaboration_role', sa.String(50), nullable=False, server_default='editor'),
        *_timestamps(),
        sa.UniqueConstraint('trip_id', 'user_id', name='uq_trip_user'),
    )
    op.create_index('ix_trip_user_trip_id', 'trip_user', ['trip_id'])
    op.create_index('ix_trip_user_user_id', 'trip_user', ['user_id'])

    # =============================================================================
    # 마커, 투어, 경로
    # =============================================================================
    op.create_table(
        'markers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('url', sa.String(2048)),
        sa.Column('is_unesco', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('ai_enriched', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_planned_dates(),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_markers_trip_id', 'markers', ['trip_id'])
    op.create_index('ix_markers_user_id', 'markers', ['user_id'])

    op.create_table(
        'tours',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_tour_id', sa.Integer(), sa.ForeignKey('tours.id', ondelete='CASCADE')),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_tours_trip_id', 'tours', ['trip_id'])
    op.create_index('ix_tours_parent_tour_id', 'tours', ['parent_tour_id'])

    op.create_table(
        'marker_tour',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('marker_id', sa.String(36), sa.ForeignKey('markers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tour_id', sa.Integer(), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_marker_tour_marker_id', 'marker_tour', ['marker_id'])
    op.create_index('ix_marker_tour_tour_id', 'marker_tour', ['tour_id'])

    op.create_table(
        'routes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('trip_id', sa.Integer(), sa.ForeignKey('trips.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tour_id', sa.Integer(), sa.ForeignKey('tours.id', ondelete='SET NULL')),
        sa.Column('start_marker_id', sa.String(36), sa.ForeignKey('markers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('end_marker_id', sa.String(36), sa.ForeignKey('markers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('transport_mode', transport_mode, nullable=False),
        sa.Column('distance', sa.Integer(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('geometry', sa.JSON(), nullable=False),
        sa.Column('transit_details', sa.JSON()),
        sa.Column('alternatives', sa.JSON()),
        sa.Column('warning', sa.Text()),
        *_timestamps(),
    )
    op.create_index('ix_routes_trip_id', 'routes', ['trip_id'])
    op.create_index('ix_routes_tour_id', 'routes', ['tour_id'])

    # =============================================================================
    # Mapbox 사용량
    # =============================================================================
    op.create_table(
        'mapbox_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('period', sa.String(7), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_request_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_mapbox_requests_period', 'mapbox_requests', ['period'], unique=True)


def downgrade() -> None:
    for table in (
        'mapbox_requests',
        'routes',
        'marker_tour',
        'tours',
        'markers',
        'trip_user',
        'trips',
        'user_invitations',
        'users',
    ):
        op.drop_table(table)

    transport_mode.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
