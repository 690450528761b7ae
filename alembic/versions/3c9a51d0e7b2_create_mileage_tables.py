"""create_mileage_tables

Revision ID: 3c9a51d0e7b2
Revises:
Create Date: 2025-03-10 09:12:41

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9a51d0e7b2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the vehicle registry, trips and state crossings.

    Deleting a vehicle deletes its trips; deleting a trip deletes its
    crossings (ON DELETE CASCADE on both foreign keys).
    """
    print("[MIGRATION] Creating vehicles, mileage_trips and state_crossings...")

    op.create_table(
        'vehicles',
        sa.Column('vehicle_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('license_plate', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('vehicle_id'),
    )
    op.create_index('ix_vehicles_user_id', 'vehicles', ['user_id'])
    op.create_index('idx_vehicles_user_active', 'vehicles', ['user_id', 'is_active'])

    op.create_table(
        'mileage_trips',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('vehicle_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('active', 'completed')", name='check_mileage_trip_status'),
        sa.CheckConstraint("end_date IS NULL OR end_date >= start_date", name='check_mileage_trip_date_order'),
        sa.ForeignKeyConstraint(['vehicle_id'], ['vehicles.vehicle_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_mileage_trips_user_id', 'mileage_trips', ['user_id'])
    op.create_index('ix_mileage_trips_vehicle_id', 'mileage_trips', ['vehicle_id'])
    op.create_index('idx_mileage_trips_user_status', 'mileage_trips', ['user_id', 'status'])
    op.create_index('idx_mileage_trips_user_end_date', 'mileage_trips', ['user_id', 'end_date'])

    op.create_table(
        'state_crossings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('trip_id', sa.String(length=36), nullable=False),
        sa.Column('state', sa.String(length=2), nullable=False),
        sa.Column('state_name', sa.String(length=100), nullable=False),
        sa.Column('odometer', sa.Integer(), nullable=False),
        sa.Column('crossing_date', sa.Date(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('odometer >= 0', name='check_crossing_odometer_non_negative'),
        sa.ForeignKeyConstraint(['trip_id'], ['mileage_trips.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_state_crossings_trip_id', 'state_crossings', ['trip_id'])
    op.create_index('idx_state_crossings_trip_timestamp', 'state_crossings', ['trip_id', 'timestamp'])

    print("[MIGRATION] ✅ Mileage tables created")


def downgrade() -> None:
    """
    Drop the mileage tables (children first).
    """
    print("[MIGRATION] Dropping mileage tables...")

    op.drop_index('idx_state_crossings_trip_timestamp', table_name='state_crossings')
    op.drop_index('ix_state_crossings_trip_id', table_name='state_crossings')
    op.drop_table('state_crossings')

    op.drop_index('idx_mileage_trips_user_end_date', table_name='mileage_trips')
    op.drop_index('idx_mileage_trips_user_status', table_name='mileage_trips')
    op.drop_index('ix_mileage_trips_vehicle_id', table_name='mileage_trips')
    op.drop_index('ix_mileage_trips_user_id', table_name='mileage_trips')
    op.drop_table('mileage_trips')

    op.drop_index('idx_vehicles_user_active', table_name='vehicles')
    op.drop_index('ix_vehicles_user_id', table_name='vehicles')
    op.drop_table('vehicles')

    print("[MIGRATION] ✅ Mileage tables dropped")
