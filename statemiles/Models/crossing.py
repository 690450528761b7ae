# statemiles/Models/crossing.py

"""
StateCrossing Model - Odometer readings at jurisdiction boundaries

Each row marks the odometer value at the moment a vehicle entered a
state or province during a trip. The first crossing of a trip (the seed)
holds the starting state and odometer.

Database Table: state_crossings
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import declared_attr, relationship
from statemiles.DB.base_class import Base


class StateCrossing(Base):
    """
    SQLAlchemy model for a single state crossing.

    Ordering:
    - Crossings of a trip are ordered by `timestamp`; insertion time only
      breaks ties between rows that share one
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "state_crossings"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="Unique crossing identifier (UUID4)"
    )

    trip_id = Column(
        String(36),
        ForeignKey('mileage_trips.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
        doc="Trip this crossing belongs to"
    )

    state = Column(
        String(2),
        nullable=False,
        doc="Jurisdiction code entered (e.g., 'TX')"
    )

    state_name = Column(
        String(100),
        nullable=False,
        doc="Display name of the jurisdiction (e.g., 'Texas')"
    )

    odometer = Column(
        Integer,
        nullable=False,
        doc="Odometer reading in miles when entering the jurisdiction"
    )

    crossing_date = Column(
        Date,
        nullable=False,
        doc="Calendar date entered by the user"
    )

    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="Event time; defines the order of crossings within a trip"
    )

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        doc="Timestamp when the row was inserted"
    )

    trip = relationship("MileageTrip", back_populates="crossings")

    __table_args__ = (
        Index('idx_state_crossings_trip_timestamp', 'trip_id', 'timestamp'),
        CheckConstraint(
            "odometer >= 0",
            name='check_crossing_odometer_non_negative'
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<StateCrossing(id={self.id!r}, trip_id={self.trip_id!r}, "
            f"state={self.state!r}, odometer={self.odometer})>"
        )
