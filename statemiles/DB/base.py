"""
statemiles/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Imports every model so that `Base.metadata` is complete before Alembic
autogenerates migrations or tests call `Base.metadata.create_all()`.

Models Registered:
-----------------
- Vehicle: Vehicles owned by a user
- MileageTrip: Driving periods of one vehicle (active or completed)
- StateCrossing: Odometer readings taken when entering a jurisdiction

Any new model MUST be imported here.
"""

from statemiles.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from statemiles.Models.vehicle import Vehicle
from statemiles.Models.trip import MileageTrip
from statemiles.Models.crossing import StateCrossing

__all__ = ["Base", "Vehicle", "MileageTrip", "StateCrossing"]
