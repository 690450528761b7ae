# statemiles/Models/vehicle.py

"""
Vehicle Model - Per-user Vehicle Registry

Trips can only be started for a vehicle registered here by the same user.

Database Table: vehicles
Primary Key: vehicle_id (String, UUID4)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy.orm import declared_attr
from sqlalchemy import Column, String, DateTime, Boolean, Index
from statemiles.DB.base_class import Base


class Vehicle(Base):
    """
    SQLAlchemy model representing a vehicle owned by a user.

    Schema:
    - vehicle_id (PK): Generated UUID
    - user_id: Owning user (tenant key)
    - name: Display name, also used in export file names
    - license_plate: Optional plate number
    - is_active: Inactive vehicles keep their trips but cannot start new ones
    - created_at: Registration timestamp

    Relationships:
    - One-to-many with MileageTrip
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "vehicles"

    vehicle_id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="Unique vehicle identifier"
    )

    user_id = Column(
        String(100),
        nullable=False,
        index=True,
        doc="User that owns this vehicle"
    )

    name = Column(
        String(200),
        nullable=False,
        doc="Human-readable vehicle name (e.g., 'Truck 12')"
    )

    license_plate = Column(
        String(20),
        nullable=True,
        doc="License plate number"
    )

    is_active = Column(
        Boolean,
        default=True,
        nullable=False,
        doc="Whether new trips may be started for this vehicle"
    )

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        doc="Timestamp when the vehicle was registered"
    )

    __table_args__ = (
        Index('idx_vehicles_user_active', 'user_id', 'is_active'),
    )

    def __repr__(self) -> str:
        return (
            f"<Vehicle(vehicle_id={self.vehicle_id!r}, "
            f"name={self.name!r}, is_active={self.is_active})>"
        )
