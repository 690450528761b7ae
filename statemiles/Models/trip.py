# statemiles/Models/trip.py
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import declared_attr, relationship
from statemiles.DB.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MileageTrip(Base):
    """
    SQLAlchemy model for a state mileage trip.

    A trip is one contiguous driving period of a single vehicle. Its
    crossings (StateCrossing) record the odometer each time the vehicle
    enters a jurisdiction; per-state mileage is derived from them and is
    never stored.

    Lifecycle:
    - Created 'active' together with its seed crossing
    - Becomes 'completed' when the user ends it (end_date stamped)
    - Deleted explicitly, which removes its crossings too

    Related models:
    - Vehicle (1:N) - one vehicle has many trips
    - StateCrossing (1:N) - one trip has many crossings
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "mileage_trips"

    # ========================================
    # PRIMARY KEY
    # ========================================
    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="Unique trip identifier (UUID4)"
    )

    # ========================================
    # OWNERSHIP
    # ========================================
    user_id = Column(
        String(100),
        nullable=False,
        index=True,
        doc="User that owns this trip"
    )

    vehicle_id = Column(
        String(36),
        ForeignKey('vehicles.vehicle_id', ondelete='CASCADE'),
        nullable=False,
        index=True,
        doc="Vehicle driven during this trip"
    )

    # ========================================
    # LIFECYCLE
    # ========================================
    status = Column(
        String(20),
        nullable=False,
        default='active',
        server_default='active',
        doc="Trip status: 'active' (ongoing) or 'completed'"
    )

    start_date = Column(
        Date,
        nullable=False,
        doc="Calendar date the trip started"
    )

    end_date = Column(
        Date,
        nullable=True,
        doc="Calendar date the trip ended (NULL while active)"
    )

    # ========================================
    # AUDIT FIELDS
    # ========================================
    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        doc="Timestamp when trip record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=True,
        doc="Timestamp of last update"
    )

    crossings = relationship(
        "StateCrossing",
        back_populates="trip",
        order_by="[StateCrossing.timestamp, StateCrossing.created_at, StateCrossing.odometer, StateCrossing.id]",
        cascade="all, delete-orphan",
    )

    # ========================================
    # TABLE CONSTRAINTS
    # ========================================
    __table_args__ = (
        Index('idx_mileage_trips_user_status', 'user_id', 'status'),
        Index('idx_mileage_trips_user_end_date', 'user_id', 'end_date'),
        CheckConstraint(
            "status IN ('active', 'completed')",
            name='check_mileage_trip_status'
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name='check_mileage_trip_date_order'
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<MileageTrip(id={self.id!r}, vehicle_id={self.vehicle_id!r}, "
            f"status={self.status!r})>"
        )
